"""
Shared dataclasses used across the EPG cache.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class Airing:
    """A single broadcast of a show, as delivered by the provider."""
    id: str
    season: int
    episode: int | None
    start_time: str
    end_time: str


@dataclass(slots=True, eq=False)
class Show:
    """A show and its airings within one day bucket."""
    id: str
    title: str
    description: str
    airings: set[Airing] | frozenset[Airing] = field(default_factory=set)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def add_airing(self, airing: Airing) -> None:
        with self._lock:
            self.airings.add(airing)

    def snapshot(self) -> Show:
        """Return a detached copy whose airing set cannot be mutated."""
        with self._lock:
            airings = frozenset(self.airings)
        return Show(
            id=self.id,
            title=self.title,
            description=self.description,
            airings=airings,
        )

    @property
    def airing_count(self) -> int:
        return len(self.airings)


@dataclass(frozen=True, slots=True)
class AiringRecord:
    """In-memory representation of one provider item before it is cached."""
    id: str
    season: int
    episode: int | None
    show_id: str
    show_title: str
    show_description: str
    start_time: str
    end_time: str

    def to_airing(self) -> Airing:
        return Airing(
            id=self.id,
            season=self.season,
            episode=self.episode,
            start_time=self.start_time,
            end_time=self.end_time,
        )


@dataclass(frozen=True, slots=True)
class Occurrence:
    """Number of airings of a show over one or more days."""
    id: str
    title: str
    description: str
    count: int


__all__ = ["Airing", "Show", "AiringRecord", "Occurrence"]
