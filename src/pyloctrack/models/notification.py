"""Persistent notification payload."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class NotificationPayload:
    """Content of the notification disclosing background tracking."""

    title: str
    body: str
    dismiss_action: Callable[[], Any]
    dismiss_label: str = "Stop"
