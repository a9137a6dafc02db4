"""Tracking lifecycle state and command results."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class TrackingState(StrEnum):
    STOPPED = "stopped"
    SUBSCRIBED = "subscribed"


class PresenceMode(StrEnum):
    BACKGROUND = "background"
    FOREGROUND = "foreground"


class CommandStatus(StrEnum):
    OK = "ok"
    NOOP = "noop"
    UNAUTHORIZED = "unauthorized"
    TRANSIENT_FAILURE = "transient_failure"


class CommandResult(BaseModel):
    """Outcome of a start/stop command.

    Parameters
    ----------
    status : CommandStatus
        What happened.
    state : TrackingState
        Tracking state after the command settled.
    detail : str or None
        Human-readable reason for failures and storage warnings.
    """

    model_config = ConfigDict(frozen=True)

    status: CommandStatus
    state: TrackingState
    detail: str | None = None

    @property
    def ok(self) -> bool:
        return self.status in (CommandStatus.OK, CommandStatus.NOOP)
