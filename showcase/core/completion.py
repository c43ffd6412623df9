# showcase/core/completion.py
# Version 01.00.00.00 dated 20261019
"""
Settle-once completion values and keyed transition waits.

A Completion is resolved or rejected exactly once. Continuations registered
with then()/catch() run synchronously, either at settle time or immediately
when the value is already settled. Each then() returns a derived Completion,
so a continuation that raises rejects the derived value instead of escaping.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)

PENDING = "pending"
RESOLVED = "resolved"
REJECTED = "rejected"


class Completion:
    """Single-assignment result of one asynchronous step."""

    __slots__ = ("name", "_state", "_value", "_reason", "_callbacks")

    def __init__(self, name: str = ""):
        self.name = name
        self._state = PENDING
        self._value: Any = None
        self._reason: Any = None
        self._callbacks: List[Tuple[Optional[Callable], Optional[Callable], "Completion"]] = []

    def __repr__(self):
        return f"Completion({self.name or '-'}, {self._state})"

    @classmethod
    def resolved(cls, value: Any = None, name: str = "") -> "Completion":
        done = cls(name)
        done.resolve(value)
        return done

    @classmethod
    def rejected(cls, reason: Any, name: str = "") -> "Completion":
        done = cls(name)
        done.reject(reason)
        return done

    # ── State ────────────────────────────────────────────────────────

    @property
    def state(self) -> str:
        return self._state

    @property
    def settled(self) -> bool:
        return self._state != PENDING

    @property
    def value(self) -> Any:
        return self._value

    @property
    def reason(self) -> Any:
        return self._reason

    # ── Settling ─────────────────────────────────────────────────────

    def resolve(self, value: Any = None) -> bool:
        """Resolve once. Returns False if already settled."""
        if self.settled:
            return False
        self._state = RESOLVED
        self._value = value
        self._flush()
        return True

    def reject(self, reason: Any = None) -> bool:
        """Reject once. Returns False if already settled."""
        if self.settled:
            return False
        self._state = REJECTED
        self._reason = reason
        if not self._callbacks:
            logger.debug("[Completion] %s rejected without handlers: %r", self.name or "-", reason)
        self._flush()
        return True

    # ── Continuations ────────────────────────────────────────────────

    def then(self, on_resolved: Optional[Callable[[Any], Any]] = None,
             on_rejected: Optional[Callable[[Any], Any]] = None) -> "Completion":
        derived = Completion(self.name)
        self._callbacks.append((on_resolved, on_rejected, derived))
        if self.settled:
            self._flush()
        return derived

    def catch(self, on_rejected: Callable[[Any], Any]) -> "Completion":
        return self.then(None, on_rejected)

    def _flush(self) -> None:
        callbacks, self._callbacks = self._callbacks, []
        for on_resolved, on_rejected, derived in callbacks:
            self._run(on_resolved, on_rejected, derived)

    def _run(self, on_resolved, on_rejected, derived: "Completion") -> None:
        if self._state == RESOLVED:
            handler, argument = on_resolved, self._value
            if handler is None:
                derived.resolve(argument)
                return
        else:
            handler, argument = on_rejected, self._reason
            if handler is None:
                derived.reject(argument)
                return
        try:
            result = handler(argument)
        except Exception as e:
            logger.debug("[Completion] %s continuation raised %r", self.name or "-", e)
            derived.reject(e)
            return
        if isinstance(result, Completion):
            result.then(derived.resolve, derived.reject)
        else:
            derived.resolve(result)


def as_completion(value: Any, name: str = "") -> Completion:
    """Wrap a plain value (or pass a Completion through)."""
    if isinstance(value, Completion):
        return value
    return Completion.resolved(value, name)


class TransitionWatch:
    """Keyed wait over a finite set of animated properties.

    ``observe(name)`` removes *name* from the pending set; the completion
    resolves when the set becomes empty. A watch created with an empty set
    is resolved from the start. ``observe(None)`` settles regardless of
    what is pending.
    """

    def __init__(self, properties: Iterable[str] = ()):
        self._pending = set(properties)
        self.completion = Completion("transition")
        if not self._pending:
            self.completion.resolve()

    @property
    def pending(self) -> frozenset:
        return frozenset(self._pending)

    @property
    def settled(self) -> bool:
        return self.completion.settled

    def observe(self, name: Optional[str] = None) -> None:
        if self.completion.settled:
            return
        if name is None:
            self._pending.clear()
        else:
            self._pending.discard(name)
        if not self._pending:
            self.completion.resolve()

    def flush(self) -> None:
        """Settle a watch whose animations were superseded or stopped."""
        self.observe(None)

    def fail(self, reason: Any) -> None:
        self._pending.clear()
        self.completion.reject(reason)
