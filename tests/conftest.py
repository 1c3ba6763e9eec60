import pytest

from economy.config import EventDefinition, find_event, get_rng
from economy.engine import EconomySimulator
from economy.models import FiscalModel, GrowthModel, MonetaryModel


@pytest.fixture
def rng():
    return get_rng(1234)


@pytest.fixture
def growth():
    return GrowthModel()


@pytest.fixture
def monetary(rng):
    return MonetaryModel(rng=rng)


@pytest.fixture
def fiscal():
    return FiscalModel()


@pytest.fixture
def certain_recession():
    recession = find_event("Recession")
    return EventDefinition(
        recession.name, recession.description, 1.0,
        dict(recession.effects), recession.category, recession.duration,
    )


@pytest.fixture
def quiet_sim(rng):
    """An equilibrated simulator with no possible events, already running."""
    sim = EconomySimulator(events=[], rng=rng)
    sim.equilibrate()
    sim.start()
    return sim
