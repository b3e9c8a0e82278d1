"""Alert and toast stores.

Alerts are blocking messages that wait for acknowledgement; toasts are
transient confirmations that expire on their own. Feature stores never touch
these directly: callers route an ActionResult here with report().
"""

import itertools
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

from ..state import ActionResult, Store


class ToastKind(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


@dataclass(frozen=True)
class Alert:
    title: str
    message: str


@dataclass(frozen=True)
class Toast:
    id: int
    message: str
    kind: ToastKind
    created_at: datetime
    duration: float  # seconds

    def expired(self, now: datetime) -> bool:
        return now >= self.created_at + timedelta(seconds=self.duration)


@dataclass(frozen=True)
class AlertState:
    alerts: list[Alert] = field(default_factory=list)

    @property
    def current(self) -> Optional[Alert]:
        return self.alerts[0] if self.alerts else None


@dataclass(frozen=True)
class ToastState:
    toasts: list[Toast] = field(default_factory=list)


class AlertStore(Store[AlertState]):
    """Queue of alerts shown one at a time."""

    def __init__(self):
        super().__init__(AlertState())

    def show(self, title: str, message: str) -> Alert:
        alert = Alert(title=title, message=message)
        self.set_state(alerts=self.state.alerts + [alert])
        return alert

    def dismiss(self) -> Optional[Alert]:
        """Remove and return the alert at the front of the queue."""
        current = self.state.current
        if current is not None:
            self.set_state(alerts=self.state.alerts[1:])
        return current


class ToastStore(Store[ToastState]):
    """Transient notifications."""

    DEFAULT_DURATION = 3.0

    def __init__(self):
        super().__init__(ToastState())
        self._ids = itertools.count(1)

    def show(
        self,
        message: str,
        kind: ToastKind = ToastKind.INFO,
        duration: Optional[float] = None,
        now: Optional[datetime] = None,
    ) -> Toast:
        toast = Toast(
            id=next(self._ids),
            message=message,
            kind=kind,
            created_at=now or datetime.now(timezone.utc),
            duration=self.DEFAULT_DURATION if duration is None else duration,
        )
        self.set_state(toasts=self.state.toasts + [toast])
        return toast

    def dismiss(self, toast_id: int) -> None:
        self.set_state(toasts=[t for t in self.state.toasts if t.id != toast_id])

    def expire(self, now: Optional[datetime] = None) -> list[Toast]:
        """Drop expired toasts and return them."""
        now = now or datetime.now(timezone.utc)
        expired = [t for t in self.state.toasts if t.expired(now)]
        if expired:
            self.set_state(toasts=[t for t in self.state.toasts if not t.expired(now)])
        return expired


def report(
    result: ActionResult,
    alerts: AlertStore,
    toasts: ToastStore,
    success_message: Optional[str] = None,
    error_title: str = "Error",
) -> None:
    """Route an action outcome to a success toast or an error alert."""
    if result.success:
        if success_message:
            toasts.show(success_message, ToastKind.SUCCESS)
    else:
        alerts.show(error_title, result.error or "Something went wrong")
