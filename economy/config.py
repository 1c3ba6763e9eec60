"""
Configuration for the Economy Simulator.

Defines the parameter blocks of the growth, monetary and fiscal models,
the catalog of random events that can hit the economy, and named
scenario presets.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

import numpy as np


RANDOM_SEED = 42  # Fixed seed for reproducible runs


class ConfigurationError(ValueError):
    """Raised when parameters or catalog entries cannot drive a simulation."""


def get_rng(seed: Optional[int] = RANDOM_SEED) -> np.random.Generator:
    """Get a random number generator; ``None`` draws fresh OS entropy."""
    return np.random.default_rng(seed)


# =============================================================================
# SHOCKS
# =============================================================================

class ShockTarget(str, Enum):
    GROWTH = "growth"
    MONETARY = "monetary"


class ShockKind(str, Enum):
    """Named perturbations an event can apply to a model."""

    TECHNOLOGY = "technology"
    PRODUCTIVITY = "productivity"
    POPULATION = "population"
    DEPRECIATION = "depreciation"
    CAPITAL_DESTRUCTION = "capital_destruction"
    INFLATION_SHOCK = "inflation_shock"
    UNEMPLOYMENT_SHOCK = "unemployment_shock"
    MONEY_SUPPLY_SHOCK = "money_supply_shock"


SHOCK_TARGETS: Dict[ShockKind, ShockTarget] = {
    ShockKind.TECHNOLOGY: ShockTarget.GROWTH,
    ShockKind.PRODUCTIVITY: ShockTarget.GROWTH,
    ShockKind.POPULATION: ShockTarget.GROWTH,
    ShockKind.DEPRECIATION: ShockTarget.GROWTH,
    ShockKind.CAPITAL_DESTRUCTION: ShockTarget.GROWTH,
    ShockKind.INFLATION_SHOCK: ShockTarget.MONETARY,
    ShockKind.UNEMPLOYMENT_SHOCK: ShockTarget.MONETARY,
    ShockKind.MONEY_SUPPLY_SHOCK: ShockTarget.MONETARY,
}


def parse_shock_kind(kind) -> Optional[ShockKind]:
    """Return ``kind`` as a ShockKind, or None if it names no known shock."""
    if isinstance(kind, ShockKind):
        return kind
    try:
        return ShockKind(kind)
    except ValueError:
        return None


# =============================================================================
# MODEL PARAMETERS
# =============================================================================

@dataclass
class GrowthParameters:
    """Solow model parameters and initial conditions."""

    alpha: float = 0.3  # capital share of output
    delta: float = 0.05  # depreciation rate
    n: float = 0.02  # population growth rate
    g: float = 0.01  # technology growth rate
    s: float = 0.2  # savings rate
    A0: float = 1.0  # initial technology
    K0: float = 100.0  # initial capital
    L0: float = 1000.0  # initial labor

    def validate(self) -> None:
        if not 0 < self.alpha < 1:
            raise ConfigurationError(f"alpha must lie in (0, 1), got {self.alpha}")
        if self.delta < 0:
            raise ConfigurationError(f"delta must be non-negative, got {self.delta}")
        if not 0 <= self.s <= 1:
            raise ConfigurationError(f"savings rate must lie in [0, 1], got {self.s}")
        # Output and every per-worker ratio divide by these
        for name in ("A0", "K0", "L0"):
            value = getattr(self, name)
            if not value > 0:
                raise ConfigurationError(f"{name} must be positive, got {value}")

        # The first year must leave some capital, or output collapses to zero
        output = self.A0 * self.K0 ** self.alpha * self.L0 ** (1 - self.alpha)
        if self.K0 + self.s * output - self.delta * self.K0 <= 0:
            raise ConfigurationError(
                f"delta={self.delta} with s={self.s} wipes out all capital in the first year"
            )


@dataclass
class MonetaryParameters:
    interest_rate: float = 0.03
    inflation_target: float = 0.02
    money_supply_growth: float = 0.03


@dataclass
class FiscalParameters:
    tax_rate: float = 0.25
    government_spending: float = 0.15  # fraction of GDP
    debt_to_gdp: float = 0.6


# =============================================================================
# RANDOM EVENTS
# =============================================================================

class EventCategory(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    MIXED = "mixed"


@dataclass
class EventDefinition:
    """A catalog entry: a shock that may strike in any year after year 0."""

    name: str
    description: str
    probability: float  # independent draw per tick
    effects: Dict[ShockKind, float]
    category: EventCategory
    duration: int  # years the effects keep applying

    def __post_init__(self):
        effects = {}
        for kind, magnitude in self.effects.items():
            parsed = parse_shock_kind(kind)
            if parsed is None:
                raise ConfigurationError(f"{self.name}: unknown effect {kind!r}")
            if parsed in (ShockKind.POPULATION, ShockKind.TECHNOLOGY) and magnitude <= -1:
                raise ConfigurationError(
                    f"{self.name}: {parsed.value} magnitude {magnitude} would wipe out the economy"
                )
            if parsed is ShockKind.CAPITAL_DESTRUCTION and abs(magnitude) >= 1:
                raise ConfigurationError(
                    f"{self.name}: capital_destruction magnitude {magnitude} destroys all capital"
                )
            effects[parsed] = magnitude
        self.effects = effects

        try:
            self.category = EventCategory(self.category)
        except ValueError:
            raise ConfigurationError(f"{self.name}: unknown category {self.category!r}")

        if not 0 <= self.probability <= 1:
            raise ConfigurationError(f"{self.name}: probability must lie in [0, 1]")
        if int(self.duration) != self.duration or self.duration < 1:
            raise ConfigurationError(f"{self.name}: duration must be a positive integer")


# Declaration order matters: each year the catalog is scanned top to bottom
# and the first event that fires ends the scan.
DEFAULT_EVENTS: List[EventDefinition] = [
    EventDefinition(
        "Technology Boom",
        "New innovations boost productivity across the economy",
        0.05, {"technology": 0.1, "productivity": 0.005}, "positive", 1,
    ),
    EventDefinition(
        "Financial Crisis",
        "Banking sector collapse destroys capital and reduces investment",
        0.03, {"capital_destruction": 0.15, "unemployment_shock": 0.03}, "negative", 3,
    ),
    EventDefinition(
        "Natural Disaster",
        "Major earthquake destroys infrastructure and capital",
        0.02, {"capital_destruction": 0.08, "population": -0.02}, "negative", 2,
    ),
    EventDefinition(
        "Baby Boom",
        "Population growth accelerates due to cultural changes",
        0.04, {"population": 0.05}, "mixed", 5,
    ),
    EventDefinition(
        "Oil Crisis",
        "Energy prices spike, reducing productivity and increasing inflation",
        0.03, {"inflation_shock": 0.04, "productivity": -0.01}, "negative", 2,
    ),
    EventDefinition(
        "Trade War",
        "International trade tensions reduce economic efficiency",
        0.04, {"productivity": -0.008, "inflation_shock": 0.015}, "negative", 4,
    ),
    EventDefinition(
        "Medical Breakthrough",
        "Healthcare advances increase life expectancy and productivity",
        0.03, {"population": 0.01, "technology": 0.05}, "positive", 1,
    ),
    EventDefinition(
        "Housing Bubble Burst",
        "Real estate market collapse reduces wealth and consumption",
        0.025, {"capital_destruction": 0.1, "unemployment_shock": 0.025}, "negative", 3,
    ),
    EventDefinition(
        "Immigration Wave",
        "Large influx of workers changes labor market dynamics",
        0.04, {"population": 0.03, "unemployment_shock": 0.01}, "mixed", 2,
    ),
    EventDefinition(
        "Recession",
        "Economic downturn reduces output and increases unemployment",
        0.08,
        {"capital_destruction": 0.05, "unemployment_shock": 0.02, "productivity": -0.005},
        "negative", 2,
    ),
    EventDefinition(
        "Tech Startup Boom",
        "Venture capital floods into new technology companies",
        0.06, {"technology": 0.08, "inflation_shock": 0.01}, "positive", 2,
    ),
    EventDefinition(
        "Currency Crisis",
        "Currency devaluation affects international trade",
        0.02, {"inflation_shock": 0.06, "capital_destruction": 0.03}, "negative", 1,
    ),
]


def find_event(name: str, catalog: Optional[List[EventDefinition]] = None) -> EventDefinition:
    """Look up a catalog entry by name."""
    for event in catalog if catalog is not None else DEFAULT_EVENTS:
        if event.name == name:
            return event
    raise KeyError(name)


# =============================================================================
# SIMULATION PARAMETERS
# =============================================================================

@dataclass
class SimulationParams:
    """All tunable parameters for the economy simulation."""

    growth: GrowthParameters = field(default_factory=GrowthParameters)
    monetary: MonetaryParameters = field(default_factory=MonetaryParameters)
    fiscal: FiscalParameters = field(default_factory=FiscalParameters)

    # --- Bookkeeping ---
    history_limit: int = 100  # snapshots kept, oldest evicted first

    # --- Equilibration ---
    equilibration_max_steps: int = 200
    equilibration_batch_size: int = 5  # steps between progress reports
    convergence_tolerance: float = 0.001  # relative change per step

    seed: Optional[int] = None  # None = fresh entropy each run


# Named scenario presets
SCENARIO_PRESETS: Dict[str, SimulationParams] = {
    "Baseline": SimulationParams(),
    "High Savings": SimulationParams(
        growth=GrowthParameters(s=0.35),
    ),
    "Rapid Innovation": SimulationParams(
        growth=GrowthParameters(g=0.03, A0=1.2),
    ),
    "Aging Population": SimulationParams(
        growth=GrowthParameters(n=0.0, delta=0.06, L0=800),
        fiscal=FiscalParameters(government_spending=0.22),
    ),
    "Developing Economy": SimulationParams(
        growth=GrowthParameters(n=0.04, s=0.25, A0=0.6, K0=50, L0=1500),
        monetary=MonetaryParameters(interest_rate=0.06, money_supply_growth=0.06),
    ),
    "Capital Intensive": SimulationParams(
        growth=GrowthParameters(alpha=0.45, delta=0.08, K0=400),
    ),
}
