"""
Random events that perturb the economy.

Each year after year 0 the catalog is scanned in declaration order and the
first event whose independent draw succeeds becomes active; at most one
new event starts per year. Active events re-apply their shocks every year
until their duration runs out.
"""

import itertools
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .config import (
    DEFAULT_EVENTS,
    SHOCK_TARGETS,
    EventDefinition,
    ShockTarget,
    get_rng,
)
from .models import GrowthModel, MonetaryModel

logger = logging.getLogger(__name__)

STABLE_MESSAGE = "Economy is stable..."


@dataclass
class ActiveEvent:
    """A catalog event currently affecting the economy."""

    definition: EventDefinition
    start_year: int
    remaining_duration: int
    id: int

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def description(self) -> str:
        return self.definition.description

    @property
    def effects(self):
        return self.definition.effects

    @property
    def category(self):
        return self.definition.category

    @property
    def duration(self) -> int:
        return self.definition.duration


@dataclass
class EventRecord:
    name: str
    year: int
    description: str


class EventSystem:
    """Draws new events and applies the shocks of the active ones."""

    def __init__(
        self,
        catalog: Sequence[EventDefinition] = None,
        rng: np.random.Generator = None,
    ):
        self.catalog: List[EventDefinition] = list(DEFAULT_EVENTS if catalog is None else catalog)
        self.rng = rng if rng is not None else get_rng(None)

        self._active: List[ActiveEvent] = []
        self._history: List[EventRecord] = []
        self._ids = itertools.count(1)

    @property
    def active_events(self) -> Tuple[ActiveEvent, ...]:
        return tuple(self._active)

    @property
    def history(self) -> Tuple[EventRecord, ...]:
        return tuple(self._history)

    def check_for_events(self, year: int) -> Optional[ActiveEvent]:
        # Year 0 is the warm-up year
        if year == 0:
            return None

        for definition in self.catalog:
            if self.rng.random() < definition.probability:
                event = ActiveEvent(
                    definition=definition,
                    start_year=year,
                    remaining_duration=definition.duration,
                    id=next(self._ids),
                )
                self._active.append(event)
                self._history.append(EventRecord(definition.name, year, definition.description))
                logger.info("Year %d: %s (%d years)", year, definition.name, definition.duration)
                return event

        return None

    def apply_event_effects(self, growth: GrowthModel, monetary: MonetaryModel) -> None:
        for event in self._active:
            for kind, magnitude in event.effects.items():
                target = SHOCK_TARGETS[kind]
                if target is ShockTarget.GROWTH:
                    growth.apply_shock(kind, magnitude)
                elif target is ShockTarget.MONETARY:
                    monetary.apply_monetary_shock(kind, magnitude)

    def update_active_events(self) -> None:
        for event in self._active:
            event.remaining_duration -= 1

        expired = [e for e in self._active if e.remaining_duration <= 0]
        for event in expired:
            logger.debug("%s has run its course", event.name)
        self._active = [e for e in self._active if e.remaining_duration > 0]

    def event_message(self) -> str:
        if not self._active:
            return STABLE_MESSAGE

        return " | ".join(
            f"{e.name}: {e.description} ({e.remaining_duration} years remaining)"
            for e in self._active
        )

    def recent_events(self, count: int = 5) -> List[EventRecord]:
        if count <= 0:
            return []
        return self._history[-count:]
