"""Observable state containers shared by the feature stores.

Each store holds one immutable state snapshot (a dataclass). Actions replace
the snapshot through set_state() and every subscriber is told about the swap.

Usage:
    store = SessionStore(api)
    unsubscribe = store.subscribe(lambda new, old: render(new))
    store.start_session("b1", "s1", 10)
    unsubscribe()
"""

import logging
import threading
from dataclasses import dataclass, replace
from typing import Any, Callable, Generic, Optional, TypeVar

from pydantic import ValidationError

from .api.client import ApiError

logger = logging.getLogger(__name__)

S = TypeVar("S")

Listener = Callable[[Any, Any], None]

# Errors a store action turns into a failed result; RequestCancelled is an ApiError
HANDLED_ERRORS = (ApiError, ValidationError, KeyError)


def error_message(exc: Exception) -> str:
    """Human readable message for a caught error."""
    if isinstance(exc, ApiError):
        return exc.message
    if isinstance(exc, ValidationError):
        return "Received an unexpected response from the server"
    return str(exc) or exc.__class__.__name__


@dataclass(frozen=True)
class ActionResult:
    """Outcome of a store action that reports failure instead of raising."""

    success: bool
    error: Optional[str] = None
    data: Any = None

    @classmethod
    def ok(cls, data: Any = None) -> "ActionResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "ActionResult":
        return cls(success=False, error=error)


class Store(Generic[S]):
    """Holds a state snapshot and notifies listeners when it is replaced."""

    def __init__(self, initial: S):
        self._state = initial
        self._lock = threading.RLock()
        self._listeners: list[Listener] = []

    @property
    def state(self) -> S:
        """Current state snapshot."""
        return self._state

    def set_state(self, **changes: Any) -> S:
        """Replace the snapshot with a copy carrying the given field changes."""
        with self._lock:
            old = self._state
            self._state = replace(old, **changes)
            new = self._state
        for listener in list(self._listeners):
            listener(new, old)
        return new

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
