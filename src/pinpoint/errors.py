"""Exception hierarchy surfaced to callers."""

from __future__ import annotations


class PinpointError(Exception):
    """Base class for every error raised by pinpoint."""


class SnapshotError(PinpointError):
    """The DOM snapshot could not be built and no cached state exists."""


class ElementNotFoundError(PinpointError):
    def __init__(self, index: int):
        self.index = index
        super().__init__(f"Element with index {index} not found")


class ActionError(PinpointError):
    """A click or fill against an indexed element failed."""

    def __init__(self, index: int | None, cause: str):
        self.index = index
        self.cause = cause
        super().__init__(f"Action on index {index} failed: {cause}")


class SelectionError(PinpointError):
    """Every LLM selection attempt raised."""
