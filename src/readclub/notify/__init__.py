"""Alerts and toasts."""

from .store import Alert, AlertStore, Toast, ToastKind, ToastStore, report

__all__ = [
    "Alert",
    "AlertStore",
    "Toast",
    "ToastKind",
    "ToastStore",
    "report",
]
