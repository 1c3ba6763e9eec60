"""
Economic models advanced one year at a time.

1. Solow Growth
   Cobb-Douglas output from technology, capital and labor; savings
   accumulate capital, depreciation erodes it, technology and labor grow
   at fixed rates.

2. Monetary
   Adaptive-expectations Phillips curve for inflation and an Okun's-law
   rule for unemployment, both driven by the output gap (growth relative
   to a 2% trend) plus noise. The central bank nudges its rate toward the
   inflation target.

3. Fiscal
   Revenue and spending are fixed shares of GDP; deficits accumulate into
   debt, and once debt exceeds GDP the tax rate ratchets upward.
"""

import logging
from dataclasses import dataclass, replace
from typing import Optional

import numpy as np

from .config import (
    FiscalParameters,
    GrowthParameters,
    MonetaryParameters,
    ShockKind,
    get_rng,
    parse_shock_kind,
)

logger = logging.getLogger(__name__)

TREND_GROWTH = 0.02  # potential growth used for the output gap
INFLATION_FLOOR = -0.05
UNEMPLOYMENT_FLOOR = 0.02
MAX_INTEREST_RATE = 0.15
RATE_STEP = 0.0025  # quarter-point moves
TARGET_BAND = 0.01
MAX_TAX_RATE = 0.6


@dataclass
class GrowthState:
    year: int
    technology: float
    capital: float
    labor: float

    # Derived, recomputed after every mutation
    output: float = 0.0
    consumption: float = 0.0
    investment: float = 0.0
    gdp_per_capita: float = 0.0
    capital_per_worker: float = 0.0
    output_per_worker: float = 0.0


@dataclass
class MonetaryState:
    inflation: float = 0.02
    unemployment: float = 0.05
    money_supply: float = 1000.0
    price_level: float = 1.0


@dataclass
class FiscalState:
    government_debt: float = 0.0
    deficit: float = 0.0
    tax_revenue: float = 0.0
    government_expenditure: float = 0.0


class GrowthModel:
    """Solow growth model with Cobb-Douglas production."""

    def __init__(self, params: GrowthParameters = None):
        self.params = replace(params) if params is not None else GrowthParameters()
        self.params.validate()

        p = self.params
        self.state = GrowthState(year=0, technology=p.A0, capital=p.K0, labor=p.L0)
        self._previous_gdp_per_capita: Optional[float] = None
        self.last_growth_rate = 0.0

        self._update_derived()

    def _update_derived(self) -> None:
        st = self.state
        p = self.params

        st.output = st.technology * st.capital ** p.alpha * st.labor ** (1 - p.alpha)
        st.gdp_per_capita = st.output / st.labor
        st.capital_per_worker = st.capital / st.labor
        st.output_per_worker = st.output / st.labor
        st.consumption = (1 - p.s) * st.output
        st.investment = p.s * st.output

    def step(self) -> None:
        """Advance one year."""
        st = self.state
        p = self.params

        # Production uses this year's inputs; the new inputs take effect next year
        output = st.technology * st.capital ** p.alpha * st.labor ** (1 - p.alpha)
        investment = p.s * output
        depreciation = p.delta * st.capital

        st.year += 1
        st.technology = st.technology * (1 + p.g)
        st.labor = st.labor * (1 + p.n)
        st.capital = max(st.capital + investment - depreciation, 0.0)

        self._update_derived()

    def set_savings_rate(self, percent: float) -> None:
        self.params.s = percent / 100
        self._update_derived()

    def apply_shock(self, kind, magnitude: float) -> None:
        """Apply a one-off shock; kinds that do not touch growth are ignored."""
        shock = parse_shock_kind(kind)
        st = self.state
        p = self.params

        if shock is ShockKind.TECHNOLOGY:
            st.technology *= 1 + magnitude
        elif shock is ShockKind.PRODUCTIVITY:
            p.g += magnitude
        elif shock is ShockKind.POPULATION:
            st.labor *= 1 + magnitude
        elif shock is ShockKind.DEPRECIATION:
            p.delta += magnitude
        elif shock is ShockKind.CAPITAL_DESTRUCTION:
            st.capital = max(st.capital * (1 - abs(magnitude)), 0.0)
        else:
            logger.debug("Growth model ignoring shock %r", kind)
            return

        logger.debug("Growth shock %s (%+.4f) in year %d", shock.value, magnitude, st.year)
        self._update_derived()

    def get_growth_rate(self) -> float:
        """Percent change in GDP per capita since the previous call.

        Reading the rate moves the reference point, so a second call in the
        same year returns 0. Callers that only want to look at the latest
        value should use ``last_growth_rate``.
        """
        if self.state.year < 2:
            return 0.0

        current = self.state.gdp_per_capita
        previous = self._previous_gdp_per_capita or current
        self._previous_gdp_per_capita = current

        # Zero output only happens once every unit of capital is destroyed
        self.last_growth_rate = (current - previous) / previous * 100 if previous else 0.0
        return self.last_growth_rate

    def reset_growth_rate(self) -> None:
        self._previous_gdp_per_capita = None
        self.last_growth_rate = 0.0


class MonetaryModel:
    """Inflation, unemployment and the policy rate."""

    def __init__(self, params: MonetaryParameters = None, rng: np.random.Generator = None):
        self.params = replace(params) if params is not None else MonetaryParameters()
        self.state = MonetaryState()
        self.rng = rng if rng is not None else get_rng(None)

    def step(self, gdp_growth: float) -> None:
        """Advance one year given GDP growth as a fraction (0.03 = 3%)."""
        st = self.state
        p = self.params

        st.money_supply *= 1 + p.money_supply_growth

        output_gap = gdp_growth - TREND_GROWTH
        inflation_noise = (self.rng.random() - 0.5) * 0.01
        unemployment_noise = (self.rng.random() - 0.5) * 0.005

        # Expected inflation is last year's inflation
        st.inflation = max(st.inflation + 0.5 * output_gap + inflation_noise, INFLATION_FLOOR)
        st.unemployment = max(
            UNEMPLOYMENT_FLOOR,
            st.unemployment - 0.5 * output_gap + unemployment_noise,
        )
        st.price_level *= 1 + st.inflation

        if st.inflation > p.inflation_target + TARGET_BAND:
            p.interest_rate = min(MAX_INTEREST_RATE, p.interest_rate + RATE_STEP)
        elif st.inflation < p.inflation_target - TARGET_BAND:
            p.interest_rate = max(0.0, p.interest_rate - RATE_STEP)

    def set_interest_rate(self, percent: float) -> None:
        self.params.interest_rate = percent / 100

    def apply_monetary_shock(self, kind, magnitude: float) -> None:
        shock = parse_shock_kind(kind)
        st = self.state

        if shock is ShockKind.INFLATION_SHOCK:
            st.inflation += magnitude
        elif shock is ShockKind.UNEMPLOYMENT_SHOCK:
            st.unemployment += magnitude
        elif shock is ShockKind.MONEY_SUPPLY_SHOCK:
            st.money_supply *= 1 + magnitude
        else:
            logger.debug("Monetary model ignoring shock %r", kind)
            return

        logger.debug("Monetary shock %s (%+.4f)", shock.value, magnitude)


class FiscalModel:
    """Government budget with an automatic tax stabilizer."""

    def __init__(self, params: FiscalParameters = None):
        self.params = replace(params) if params is not None else FiscalParameters()
        self.state = FiscalState()

    def step(self, gdp: float) -> None:
        st = self.state
        p = self.params

        st.tax_revenue = p.tax_rate * gdp
        st.government_expenditure = p.government_spending * gdp
        st.deficit = st.government_expenditure - st.tax_revenue

        # Negative debt is an accumulated surplus
        st.government_debt += st.deficit
        # Zero output only happens once every unit of capital is destroyed
        if gdp:
            p.debt_to_gdp = st.government_debt / gdp

        # Only ratchets up; cutting taxes is a policy decision
        if p.debt_to_gdp > 1.0:
            p.tax_rate = min(MAX_TAX_RATE, p.tax_rate + 0.01)

    def set_tax_rate(self, percent: float) -> None:
        self.params.tax_rate = percent / 100

    def set_government_spending(self, percent: float) -> None:
        self.params.government_spending = percent / 100

    @staticmethod
    def get_fiscal_multiplier(gdp_growth: float) -> float:
        """Spending multiplier, larger when the economy is growing slowly."""
        return max(0.5, min(1.5, 1.0 + (0.05 - gdp_growth) * 2))
