"""Webhook notification module for showtape."""

from showtape.notify.webhook import Notifier, NotifyAction, build_payload

__all__ = [
    "Notifier",
    "NotifyAction",
    "build_payload",
]
