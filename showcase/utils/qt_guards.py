"""Generation guards for Showcase continuations.

A presentation load is a chain of steps that finish later than they start:
image decodes, fragment fetches, media readiness, max-width / max-height
transitions, failsafe and expiry timers. While one is in flight the user
may close the overlay, press Escape, or call show() again. Each of those
bumps ``Instance.generation``, and anything captured under the old value
must then do nothing.

    gen = inst.generation
    request.loaded.connect(make_guarded_slot(inst, on_loaded, generation=gen))
    # or
    connect_guarded(request.loaded, inst, on_loaded, generation=gen)

A guarded continuation is dropped when
- the instance has been garbage collected or its Qt wrapper deleted,
- one of the widgets listed in ``extra_valid`` has been deleted,
- ``inst.generation`` moved on since capture (skipped when gen is None).

GUARD_STATS counts what got through and what was dropped, by reason and
by continuation name, which is what the lifecycle tests assert on.
"""

from __future__ import annotations

import logging
import weakref
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Optional

import shiboken6
from PySide6.QtCore import Qt

logger = logging.getLogger(__name__)

# RuntimeError text PySide6 raises when a slot touches a deleted widget
_DELETED_MARKER = "already deleted"


@dataclass
class GuardStats:
    """Counters for guarded deliveries; ``reset()`` between tests."""

    blocked_generation: int = 0
    blocked_invalid: int = 0
    passed: int = 0
    dropped: Counter = field(default_factory=Counter)

    def reset(self) -> None:
        self.blocked_generation = 0
        self.blocked_invalid = 0
        self.passed = 0
        self.dropped.clear()

    def record_drop(self, label: str, stale: bool) -> None:
        if stale:
            self.blocked_generation += 1
        else:
            self.blocked_invalid += 1
        self.dropped[label] += 1

    def __repr__(self) -> str:
        return (
            f"GuardStats(blocked_generation={self.blocked_generation}, "
            f"blocked_invalid={self.blocked_invalid}, passed={self.passed})"
        )


GUARD_STATS = GuardStats()


def _alive(obj: Any) -> bool:
    """False only for Qt wrappers whose C++ side is gone."""
    if obj is None:
        return True
    try:
        return bool(shiboken6.isValid(obj))
    except TypeError:
        # Not a shiboken wrapper (Instance, completions, plain callables)
        return True


class GenerationGuard:
    """Admission check captured when an asynchronous step starts."""

    __slots__ = ("_owner", "generation", "attr", "widgets", "label")

    def __init__(self, owner: Any, generation: Optional[int], *,
                 widgets: Iterable[Any] = (), attr: str = "generation", label: str = "slot"):
        self._owner = weakref.ref(owner)
        self.generation = generation
        self.attr = attr
        self.widgets: List[Any] = [w for w in widgets if w is not None]
        self.label = label

    @property
    def owner(self) -> Any:
        return self._owner()

    def admits(self) -> bool:
        owner = self._owner()
        if owner is None or not _alive(owner) or not all(_alive(w) for w in self.widgets):
            GUARD_STATS.record_drop(self.label, stale=False)
            return False
        if self.generation is not None:
            current = getattr(owner, self.attr, None)
            if current != self.generation:
                GUARD_STATS.record_drop(self.label, stale=True)
                logger.debug("[Guard] Dropped %s from generation %s (now %s)",
                             self.label, self.generation, current)
                return False
        return True

    def wrap(self, slot: Callable[..., Any]) -> Callable[..., Any]:
        def guarded(*args: Any, **kwargs: Any) -> Any:
            if not self.admits():
                return None
            GUARD_STATS.passed += 1
            try:
                return slot(*args, **kwargs)
            except RuntimeError as e:
                if _DELETED_MARKER not in str(e):
                    raise
                # Overlay widgets torn down while the slot ran
                GUARD_STATS.record_drop(self.label, stale=False)
                return None

        guarded.guard = self
        return guarded


def make_guarded_slot(
    owner: Any,
    slot: Callable[..., Any],
    *,
    generation: Optional[int] = None,
    extra_valid: Optional[Iterable[Any]] = None,
    name: Optional[str] = None,
    generation_attr: str = "generation",
) -> Callable[..., Any]:
    """Wrap *slot* so it only runs while *owner* is alive and still at *generation*.

    ``extra_valid`` lists Qt objects (the content handle, the media player)
    that must also still exist. The returned callable carries its
    GenerationGuard as ``.guard``.
    """
    guard = GenerationGuard(
        owner, generation,
        widgets=extra_valid or (),
        attr=generation_attr,
        label=name or getattr(slot, "__name__", "slot"),
    )
    return guard.wrap(slot)


def connect_guarded(
    signal: Any,
    owner: Any,
    slot: Callable[..., Any],
    *,
    generation: Optional[int] = None,
    extra_valid: Optional[Iterable[Any]] = None,
    connection_type: Qt.ConnectionType = Qt.AutoConnection,
    name: Optional[str] = None,
) -> Callable[..., Any]:
    """Connect *signal* through make_guarded_slot(); returns the wrapper for disconnect()."""
    guarded = make_guarded_slot(
        owner, slot, generation=generation, extra_valid=extra_valid, name=name,
    )
    signal.connect(guarded, connection_type)
    return guarded
