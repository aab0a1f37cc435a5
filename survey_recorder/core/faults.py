"""Capture-quality fault tracking for Survey Recorder.

A fault is a named condition that makes the current capture unacceptable
(too quiet, too dark). Faults are raised and cleared independently by the
audio and video sampling tasks; the order in which they were raised decides
which one the user sees.
"""

from enum import Enum
from typing import Iterator, Optional, Tuple

from loguru import logger


class FaultKind(Enum):
    """Kinds of capture-quality faults."""

    SILENCE = "silence"
    LOW_BRIGHTNESS = "low_brightness"


class FaultSet:
    """Immutable, insertion-ordered set of active fault kinds."""

    __slots__ = ("_kinds",)

    def __init__(self, kinds: Tuple[FaultKind, ...] = ()) -> None:
        unique: Tuple[FaultKind, ...] = ()
        for kind in kinds:
            if kind not in unique:
                unique += (kind,)
        self._kinds = unique

    def add(self, kind: FaultKind) -> "FaultSet":
        """Return a set with ``kind`` appended, or this set if already present."""
        if kind in self._kinds:
            return self
        return FaultSet(self._kinds + (kind,))

    def remove(self, kind: FaultKind) -> "FaultSet":
        """Return a set without ``kind``, or this set if absent."""
        if kind not in self._kinds:
            return self
        return FaultSet(tuple(k for k in self._kinds if k != kind))

    @property
    def last(self) -> Optional[FaultKind]:
        """The most recently added fault still present."""
        return self._kinds[-1] if self._kinds else None

    def __contains__(self, kind: object) -> bool:
        return kind in self._kinds

    def __iter__(self) -> Iterator[FaultKind]:
        return iter(self._kinds)

    def __len__(self) -> int:
        return len(self._kinds)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, FaultSet):
            return self._kinds == other._kinds
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._kinds)

    def __repr__(self) -> str:
        return f"FaultSet([{', '.join(k.name for k in self._kinds)}])"


class FaultAggregator:
    """Owns the current :class:`FaultSet` shared by the sampling tasks.

    Every mutation swaps in a new snapshot in one step, so a snapshot handed
    out by :meth:`current` never changes afterwards.
    """

    def __init__(self) -> None:
        self._faults = FaultSet()

    def add(self, kind: FaultKind) -> None:
        updated = self._faults.add(kind)
        if updated is not self._faults:
            logger.info(f"Capture fault raised: {kind.value}")
        self._faults = updated

    def remove(self, kind: FaultKind) -> None:
        updated = self._faults.remove(kind)
        if updated is not self._faults:
            logger.info(f"Capture fault cleared: {kind.value}")
        self._faults = updated

    def current(self) -> FaultSet:
        return self._faults
