"""
Headless runner for the Economy Simulator.

Equilibrates the economy, simulates a number of years (resuming after
every event pause) and prints the history and the event log.

Run with: economy-sim --years 50 --preset "High Savings" --seed 42
"""

import argparse
import logging
import sys

from tabulate import tabulate

from .config import SCENARIO_PRESETS, get_rng
from .engine import EconomySimulator, EventImpact
from .events import ActiveEvent

INDICATOR_LABELS = {
    "gdp_per_capita": "GDP per capita",
    "capital": "Capital stock",
    "population": "Population",
    "inflation": "Inflation (%)",
    "unemployment": "Unemployment (%)",
}


def format_impact(event: ActiveEvent, impact: EventImpact) -> str:
    lines = [f"Year {event.start_year}: {event.name} ({event.category.value}, {event.duration} yrs)",
             f"  {event.description}"]
    for name, (change, pct) in impact.changes().items():
        lines.append(f"  {INDICATOR_LABELS[name]}: {change:+.2f} ({pct:+.1f}%)")
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Solow economy simulator with policy levers and random events")
    parser.add_argument("--years", type=int, default=50, help="Years to simulate")
    parser.add_argument("--preset", choices=list(SCENARIO_PRESETS), default="Baseline",
                        help="Scenario preset")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for a reproducible run")
    parser.add_argument("--savings", type=float, help="Savings rate (%%)")
    parser.add_argument("--interest", type=float, help="Interest rate (%%)")
    parser.add_argument("--tax", type=float, help="Tax rate (%%)")
    parser.add_argument("--spending", type=float, help="Government spending (%% of GDP)")
    parser.add_argument("--rows", type=int, default=10, help="History rows to print")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log simulation progress")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    rng = get_rng(args.seed) if args.seed is not None else None
    sim = EconomySimulator.from_preset(args.preset, rng=rng)

    print(f"Economy Simulator: {args.preset}")
    print("=" * 40)

    result = sim.equilibrate(progress=lambda pct: print(f"\rEquilibrating... {pct:5.1f}%", end=""))
    print()
    print(f"Equilibrated in {result.steps} steps"
          f" ({'converged' if result.converged else 'step limit reached'})")
    print()

    if args.savings is not None:
        sim.set_savings_rate(args.savings)
    if args.interest is not None:
        sim.set_interest_rate(args.interest)
    if args.tax is not None:
        sim.set_tax_rate(args.tax)
    if args.spending is not None:
        sim.set_government_spending(args.spending)

    sim.on_event(lambda event, impact: print(format_impact(event, impact)))

    remaining = args.years
    while remaining > 0:
        sim.resume()
        remaining -= sim.run(remaining)

    state = sim.current_state()
    print()
    print(f"Year {state.year}: {state.event_message}")
    print()

    df = sim.history_frame().tail(args.rows)
    print(tabulate(df, headers="keys", tablefmt="simple", floatfmt=".2f"))
    print()

    log = sim.recent_events(count=len(sim.event_system.history))
    if log:
        print(tabulate([(e.year, e.name) for e in log], headers=["Year", "Event"], tablefmt="simple"))
    else:
        print("No events occurred.")

    return 0


if __name__ == "__main__":
    sys.exit(main())
