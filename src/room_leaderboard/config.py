"""Configuration models for the engagement engine."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

DEFAULT_SYSTEM_ACTORS: tuple[str, ...] = ("unknown", "cuckoo")


@dataclass(slots=True)
class EngineSettings:
    """Tunable constants for presence inference and timer attribution."""

    grace_period: timedelta = timedelta(minutes=5)
    gap_cap: timedelta = timedelta(minutes=30)
    join_offset: timedelta = timedelta(seconds=1)
    leave_offset: timedelta = timedelta(seconds=1)
    system_actors: tuple[str, ...] = DEFAULT_SYSTEM_ACTORS

    @classmethod
    def from_minutes(
        cls,
        grace_minutes: float = 5.0,
        gap_minutes: float = 30.0,
        system_actors: tuple[str, ...] | None = None,
    ) -> "EngineSettings":
        return cls(
            grace_period=timedelta(minutes=grace_minutes),
            gap_cap=timedelta(minutes=gap_minutes),
            system_actors=system_actors if system_actors is not None else DEFAULT_SYSTEM_ACTORS,
        )

    def is_system_actor(self, user: str) -> bool:
        return user in self.system_actors
