from dataclasses import replace

import logging

import pandas as pd
import pytest

from economy.config import GrowthParameters, SimulationParams, get_rng
from economy.engine import EconomySimulator, SimulationError
from economy.events import STABLE_MESSAGE


def test_default_equilibration_terminates_at_year_zero(rng):
    sim = EconomySimulator(rng=rng)
    progress = []
    result = sim.equilibrate(progress=progress.append)

    assert result.steps <= 200
    assert sim.growth.state.year == 0
    assert sim.is_equilibrated
    assert progress[-1] == 100.0
    assert progress == sorted(progress)
    assert all(0 <= p <= 100 for p in progress)


def test_default_equilibration_reports_batches(rng):
    sim = EconomySimulator(rng=rng)
    progress = list(sim.equilibration_steps())
    # Default growth keeps capital per worker rising ~1.4% a year, so the
    # step limit ends the warm-up
    assert progress[:3] == pytest.approx([2.5, 5.0, 7.5])
    assert len(progress) == 40


def test_equilibration_stops_on_convergence(rng):
    # Capital per worker already at its steady state of (s/delta)^(1/(1-alpha))
    params = SimulationParams(
        growth=GrowthParameters(alpha=0.5, delta=0.05, s=0.2, n=0.0, g=0.0, K0=16000, L0=1000),
    )
    sim = EconomySimulator(params, rng=rng)
    result = sim.equilibrate()
    assert result.steps == 1
    assert result.converged
    assert sim.equilibration_progress == 100.0


def test_equilibration_evolves_only_growth(rng):
    sim = EconomySimulator(rng=rng)
    monetary_before = replace(sim.monetary.state)
    sim.equilibrate()
    assert sim.growth.state.technology > 1.0
    assert sim.monetary.state == monetary_before
    assert sim.fiscal.state.government_debt == 0
    assert sim.growth.last_growth_rate == 0.0


def test_abandoned_equilibration_leaves_simulator_unready(rng):
    sim = EconomySimulator(rng=rng)
    steps = sim.equilibration_steps()
    next(steps)
    steps.close()
    assert not sim.is_equilibrated
    with pytest.raises(SimulationError):
        sim.start()


def test_tick_requires_running(rng):
    sim = EconomySimulator(events=[], rng=rng)
    sim.equilibrate()
    assert sim.tick() is False
    assert sim.history == []


def test_history_is_bounded(quiet_sim):
    assert quiet_sim.run(130) == 130

    history = quiet_sim.history
    assert len(history) == 100
    assert history[-1].year == quiet_sim.growth.state.year == 130
    assert history[0].year == 31
    assert [s.year for s in history] == list(range(31, 131))


def test_first_interactive_growth_rate_is_zero(quiet_sim):
    quiet_sim.run(3)
    rates = [s.growth_rate for s in quiet_sim.history]
    assert rates[0] == 0.0
    assert rates[1] == 0.0
    assert rates[2] != 0.0


def test_snapshot_units(quiet_sim):
    quiet_sim.tick()
    snap = quiet_sim.history[-1]
    assert snap.inflation == pytest.approx(quiet_sim.monetary.state.inflation * 100)
    assert snap.unemployment == pytest.approx(quiet_sim.monetary.state.unemployment * 100)
    assert snap.population == quiet_sim.growth.state.labor
    assert snap.capital == quiet_sim.growth.state.capital


def test_fiscal_follows_output(quiet_sim):
    quiet_sim.tick()
    output = quiet_sim.growth.state.output
    assert quiet_sim.fiscal.state.tax_revenue == pytest.approx(0.25 * output)


def test_new_event_pauses_and_reports_impact(rng, certain_recession):
    sim = EconomySimulator(events=[certain_recession], rng=rng)
    sim.equilibrate()

    seen = []
    sim.on_event(lambda event, impact: seen.append((event, impact)))
    sim.start()

    # Year 0 is event-free; the first tick runs and the second one pauses
    assert sim.run(10) == 2
    assert not sim.is_running
    assert sim.growth.state.year == 2

    event, impact = seen[0]
    assert event.name == "Recession"
    assert event.start_year == 1
    assert sim.current_event is event
    assert sim.last_impact is impact
    assert impact.after.capital == pytest.approx(impact.before.capital * 0.95)
    assert impact.after.unemployment == pytest.approx(impact.before.unemployment + 2)
    assert set(impact.changes()) >= {"capital", "unemployment"}
    assert "population" not in impact.changes()

    # Paused runs do nothing until resumed
    assert sim.tick() is False
    sim.resume()
    assert sim.current_event is None
    assert sim.tick() is True
    assert len(sim.history) == 3


def test_event_listeners_see_the_recorded_tick(rng, certain_recession):
    sim = EconomySimulator(events=[certain_recession], rng=rng)
    sim.equilibrate()
    sim.start()

    history_lengths = []
    sim.on_event(lambda event, impact: history_lengths.append(len(sim.history)))
    ticks = []
    sim.on_tick(ticks.append)

    sim.run(5)
    assert history_lengths == [2]
    assert [s.year for s in ticks] == [1, 2]


def test_event_effects_repeat_while_active(rng, certain_recession):
    sim = EconomySimulator(events=[certain_recession], rng=rng)
    sim.equilibrate()
    g_before = sim.growth.params.g

    sim.start()
    sim.run(1)  # year 0, no event
    sim.run(1)  # recession starts: 1 new + 0 old
    sim.resume()
    sim.run(1)  # first recession still active, second one starts

    # Three applications of -0.005 in total
    assert sim.growth.params.g == pytest.approx(g_before - 0.015)


def test_current_state_has_no_side_effects(quiet_sim):
    quiet_sim.run(5)
    first = quiet_sim.current_state()
    second = quiet_sim.current_state()
    assert first == second
    assert first.year == 5
    assert first.growth_rate == quiet_sim.history[-1].growth_rate
    assert first.event_message == STABLE_MESSAGE
    assert first.capital_stock == quiet_sim.growth.state.capital


def test_policy_levers_take_percent(quiet_sim):
    quiet_sim.set_savings_rate(30)
    quiet_sim.set_interest_rate(4)
    quiet_sim.set_government_spending(20)
    quiet_sim.set_tax_rate(35)

    assert quiet_sim.growth.params.s == pytest.approx(0.30)
    assert quiet_sim.monetary.params.interest_rate == pytest.approx(0.04)
    assert quiet_sim.fiscal.params.government_spending == pytest.approx(0.20)
    assert quiet_sim.fiscal.params.tax_rate == pytest.approx(0.35)


def test_history_frame(quiet_sim):
    quiet_sim.run(4)
    df = quiet_sim.history_frame()
    assert isinstance(df, pd.DataFrame)
    assert list(df.index) == [1, 2, 3, 4]
    assert list(df.columns) == [
        "gdp_per_capita", "capital", "population", "growth_rate", "inflation", "unemployment",
    ]


def test_empty_history_frame(rng):
    df = EconomySimulator(rng=rng).history_frame()
    assert df.empty
    assert df.index.name == "year"


def test_reset_recreates_everything(quiet_sim):
    quiet_sim.run(10)
    quiet_sim.set_tax_rate(50)
    quiet_sim.reset()

    assert quiet_sim.history == []
    assert quiet_sim.growth.state.year == 0
    assert quiet_sim.growth.state.capital == 100
    assert quiet_sim.fiscal.params.tax_rate == 0.25
    assert not quiet_sim.is_running
    assert not quiet_sim.is_equilibrated


def test_reset_with_new_params(quiet_sim):
    quiet_sim.reset(SimulationParams(growth=GrowthParameters(L0=500)))
    assert quiet_sim.growth.state.labor == 500


def test_seed_replays_run():
    def simulate():
        sim = EconomySimulator(SimulationParams(seed=11))
        sim.equilibrate()
        years = 0
        while years < 60:
            sim.resume()
            years += sim.run(60 - years)
        return sim.history, [r.name for r in sim.event_system.history]

    assert simulate() == simulate()


def test_from_preset(rng):
    sim = EconomySimulator.from_preset("High Savings", rng=rng)
    assert sim.growth.params.s == 0.35
    with pytest.raises(KeyError, match="Unknown preset"):
        EconomySimulator.from_preset("Utopia")


def test_presets_are_not_mutated(rng):
    sim = EconomySimulator.from_preset("Baseline", rng=get_rng(0))
    sim.set_savings_rate(90)
    sim.growth.apply_shock("productivity", 0.5)
    fresh = EconomySimulator.from_preset("Baseline", rng=rng)
    assert fresh.growth.params.s == 0.2
    assert fresh.growth.params.g == 0.01


def test_failing_event_listener_leaves_tick_committed(rng, certain_recession):
    sim = EconomySimulator(events=[certain_recession], rng=rng)
    sim.equilibrate()
    sim.start()
    sim.tick()

    def explode(event, impact):
        raise RuntimeError("listener failed")

    sim.on_event(explode)
    with pytest.raises(RuntimeError):
        sim.tick()

    assert len(sim.history) == 2
    assert not sim.is_running
    assert [e.remaining_duration for e in sim.event_system.active_events] == [1]


def test_pause_is_logged(quiet_sim, caplog):
    quiet_sim.run(3)
    with caplog.at_level(logging.INFO, logger="economy.engine"):
        quiet_sim.pause()
    assert "Simulation paused in year 3" in caplog.text


def test_equilibration_without_capital_does_not_converge(rng):
    sim = EconomySimulator(rng=rng)
    sim.growth.apply_shock("capital_destruction", 1.0)
    result = sim.equilibrate()

    assert not result.converged
    assert result.steps == 200
    assert sim.growth.state.capital == 0.0


def test_tick_without_output_keeps_debt_ratio(quiet_sim):
    quiet_sim.growth.apply_shock("capital_destruction", 1.0)
    assert quiet_sim.tick() is True
    assert quiet_sim.tick() is True
    assert quiet_sim.fiscal.params.debt_to_gdp == pytest.approx(0.6)
    assert quiet_sim.history[-1].growth_rate == 0.0
