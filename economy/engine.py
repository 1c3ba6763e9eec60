"""
Economy simulation engine.

Couples the three models and the random-event layer into a yearly tick:

1. Event Check
   At most one new catalog event may start this year.

2. Shock Application
   Every active event (new or ongoing) re-applies its shocks to the
   growth and monetary models.

3. Model Steps
   Solow growth advances a year; its GDP-per-capita growth drives the
   monetary model, and its output drives the fiscal model.

4. Event Decay
   Active events count down and expire.

5. Recording
   A snapshot of the headline indicators joins the bounded history.

A new event pauses the simulation; it only continues once the caller
resumes it. Before the first tick, the growth model is equilibrated
toward its steady state with the clock held at year 0.
"""

import logging
from collections import deque
from dataclasses import asdict, dataclass, fields
from typing import Callable, Dict, Iterator, List, Optional, Tuple

import numpy as np
import pandas as pd

from .config import (
    DEFAULT_EVENTS,
    SCENARIO_PRESETS,
    EventDefinition,
    SimulationParams,
    get_rng,
)
from .events import ActiveEvent, EventRecord, EventSystem
from .models import FiscalModel, GrowthModel, MonetaryModel

logger = logging.getLogger(__name__)

# Changes at or below this size are not reported as event impacts
IMPACT_THRESHOLD = 0.01


class SimulationError(RuntimeError):
    """Raised when the simulator is driven out of order."""


@dataclass
class EconomySnapshot:
    """One year of headline indicators."""

    year: int
    gdp_per_capita: float
    capital: float
    population: float
    growth_rate: float  # %
    inflation: float  # %
    unemployment: float  # %


@dataclass
class IndicatorSnapshot:
    gdp_per_capita: float
    capital: float
    population: float
    inflation: float  # %
    unemployment: float  # %


@dataclass
class EventImpact:
    """Indicators just before and just after a new event's shocks landed."""

    event: ActiveEvent
    before: IndicatorSnapshot
    after: IndicatorSnapshot

    def changes(self) -> Dict[str, Tuple[float, float]]:
        """Map indicator -> (absolute change, percent change) for visible moves."""
        out = {}
        before = asdict(self.before)
        after = asdict(self.after)
        for name, pre in before.items():
            change = after[name] - pre
            if abs(change) > IMPACT_THRESHOLD:
                pct = change / abs(pre) * 100 if pre else float("inf")
                out[name] = (change, pct)
        return out


@dataclass
class EconomyState:
    """Read-only view of the economy for display."""

    year: int
    gdp_per_capita: float
    capital_stock: float
    population: float
    growth_rate: float  # %
    inflation: float  # %
    unemployment: float  # %
    event_message: str


@dataclass
class EquilibrationResult:
    steps: int
    converged: bool


EventListener = Callable[[ActiveEvent, EventImpact], None]
TickListener = Callable[[EconomySnapshot], None]


class EconomySimulator:
    """Year-by-year simulator of a Solow economy with policy and random events."""

    def __init__(
        self,
        params: SimulationParams = None,
        events: List[EventDefinition] = None,
        rng: np.random.Generator = None,
    ):
        self.params = params or SimulationParams()
        self.events = list(DEFAULT_EVENTS if events is None else events)

        self._event_listeners: List[EventListener] = []
        self._tick_listeners: List[TickListener] = []

        self._build(rng)

    @classmethod
    def from_preset(cls, name: str, **kwargs) -> "EconomySimulator":
        try:
            params = SCENARIO_PRESETS[name]
        except KeyError:
            raise KeyError(
                f"Unknown preset {name!r}; choose from {', '.join(SCENARIO_PRESETS)}"
            ) from None
        return cls(params=params, **kwargs)

    def _build(self, rng: Optional[np.random.Generator] = None) -> None:
        p = self.params
        self.rng = rng if rng is not None else get_rng(p.seed)

        # All randomness flows through one generator so a seed replays a run
        self.growth = GrowthModel(p.growth)
        self.monetary = MonetaryModel(p.monetary, rng=self.rng)
        self.fiscal = FiscalModel(p.fiscal)
        self.event_system = EventSystem(self.events, rng=self.rng)

        self._history = deque(maxlen=p.history_limit)
        self.current_event: Optional[ActiveEvent] = None
        self.last_impact: Optional[EventImpact] = None

        self.is_running = False
        self.is_equilibrated = False
        self.equilibration_progress = 0.0
        self._last_equilibration: Optional[EquilibrationResult] = None

    def reset(self, params: SimulationParams = None, rng: np.random.Generator = None) -> None:
        """Discard the economy and start again from the initial conditions."""
        if params is not None:
            self.params = params
        self._build(rng)
        logger.info("Simulation reset")

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------
    def on_event(self, callback: EventListener) -> None:
        self._event_listeners.append(callback)

    def on_tick(self, callback: TickListener) -> None:
        self._tick_listeners.append(callback)

    # ------------------------------------------------------------------
    # Equilibration
    # ------------------------------------------------------------------
    def equilibration_steps(self) -> Iterator[float]:
        """Step the growth model toward steady state, yielding % progress.

        The clock stays at year 0 throughout. Progress is yielded after each
        batch; iteration ends on convergence or after the step limit.
        """
        p = self.params
        max_steps = p.equilibration_max_steps
        growth = self.growth
        steps = 0
        converged = False

        while steps < max_steps and not converged:
            for _ in range(p.equilibration_batch_size):
                if steps >= max_steps:
                    break

                prev_capital = growth.state.capital_per_worker
                prev_gdp = growth.state.gdp_per_capita

                year = growth.state.year
                growth.step()
                growth.state.year = year

                steps += 1

                # A zero baseline has no relative change and never counts as converged
                if not (prev_capital and prev_gdp):
                    continue
                capital_change = abs((growth.state.capital_per_worker - prev_capital) / prev_capital)
                gdp_change = abs((growth.state.gdp_per_capita - prev_gdp) / prev_gdp)

                if capital_change < p.convergence_tolerance and gdp_change < p.convergence_tolerance:
                    converged = True
                    break

            if converged:
                self.equilibration_progress = 100.0
            else:
                self.equilibration_progress = min(steps, max_steps) / max_steps * 100
            logger.debug("Equilibration %.0f%% (%d steps)", self.equilibration_progress, steps)
            yield self.equilibration_progress

        growth.reset_growth_rate()
        self.is_equilibrated = True
        self._last_equilibration = EquilibrationResult(steps=steps, converged=converged)
        logger.info(
            "Equilibrated after %d steps (%s)",
            steps, "converged" if converged else "step limit reached",
        )

    def equilibrate(self, progress: Callable[[float], None] = None) -> EquilibrationResult:
        for pct in self.equilibration_steps():
            if progress is not None:
                progress(pct)
        return self._last_equilibration

    # ------------------------------------------------------------------
    # Running
    # ------------------------------------------------------------------
    def start(self) -> None:
        if not self.is_equilibrated:
            raise SimulationError("equilibrate the economy before starting the simulation")
        self.is_running = True
        self.current_event = None
        logger.info("Simulation running from year %d", self.growth.state.year)

    resume = start

    def pause(self) -> None:
        self.is_running = False
        logger.info("Simulation paused in year %d", self.growth.state.year)

    def clear_current_event(self) -> None:
        self.current_event = None

    def tick(self) -> bool:
        """Simulate one year if running; return whether a year was simulated."""
        if not self.is_running:
            return False

        growth, monetary, fiscal = self.growth, self.monetary, self.fiscal

        # ============================================================
        # 1. EVENTS
        # ============================================================
        new_event = self.event_system.check_for_events(growth.state.year)
        before = self._indicators() if new_event else None

        self.event_system.apply_event_effects(growth, monetary)
        after = self._indicators() if new_event else None

        # ============================================================
        # 2. MODEL STEPS
        # ============================================================
        growth.step()
        growth_rate = growth.get_growth_rate()
        monetary.step(growth_rate / 100)
        fiscal.step(growth.state.output)

        # ============================================================
        # 3. PAUSE ON NEW EVENT
        # ============================================================
        impact = None
        if new_event:
            impact = EventImpact(event=new_event, before=before, after=after)
            self.current_event = new_event
            self.last_impact = impact
            self.pause()

        self.event_system.update_active_events()

        # ============================================================
        # 4. RECORD
        # ============================================================
        snapshot = EconomySnapshot(
            year=growth.state.year,
            gdp_per_capita=growth.state.gdp_per_capita,
            capital=growth.state.capital,
            population=growth.state.labor,
            growth_rate=growth_rate,
            inflation=monetary.state.inflation * 100,
            unemployment=monetary.state.unemployment * 100,
        )
        self._history.append(snapshot)

        # Listeners hear about a tick only once it is fully committed
        if new_event:
            for listener in self._event_listeners:
                listener(new_event, impact)
        for listener in self._tick_listeners:
            listener(snapshot)

        return True

    def run(self, years: int) -> int:
        """Tick up to ``years`` times, stopping early if an event pauses the run."""
        ran = 0
        while ran < years and self.tick():
            ran += 1
        return ran

    def _indicators(self) -> IndicatorSnapshot:
        return IndicatorSnapshot(
            gdp_per_capita=self.growth.state.gdp_per_capita,
            capital=self.growth.state.capital,
            population=self.growth.state.labor,
            inflation=self.monetary.state.inflation * 100,
            unemployment=self.monetary.state.unemployment * 100,
        )

    # ------------------------------------------------------------------
    # Policy levers (percent units)
    # ------------------------------------------------------------------
    def set_savings_rate(self, percent: float) -> None:
        self.growth.set_savings_rate(percent)

    def set_interest_rate(self, percent: float) -> None:
        self.monetary.set_interest_rate(percent)

    def set_government_spending(self, percent: float) -> None:
        self.fiscal.set_government_spending(percent)

    def set_tax_rate(self, percent: float) -> None:
        self.fiscal.set_tax_rate(percent)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------
    def current_state(self) -> EconomyState:
        st = self.growth.state
        return EconomyState(
            year=st.year,
            gdp_per_capita=st.gdp_per_capita,
            capital_stock=st.capital,
            population=st.labor,
            growth_rate=self.growth.last_growth_rate,
            inflation=self.monetary.state.inflation * 100,
            unemployment=self.monetary.state.unemployment * 100,
            event_message=self.event_system.event_message(),
        )

    @property
    def history(self) -> List[EconomySnapshot]:
        return list(self._history)

    def history_frame(self) -> pd.DataFrame:
        columns = [f.name for f in fields(EconomySnapshot)]
        df = pd.DataFrame([asdict(s) for s in self._history], columns=columns)
        return df.set_index("year")

    def recent_events(self, count: int = 5) -> List[EventRecord]:
        return self.event_system.recent_events(count)

