"""Enums for file operations."""

from enum import Enum


class TargetKind(Enum):
    """Kind of file system object an operation targets."""

    FILE = "file"
    DIRECTORY = "directory"


class ProbeOutcome(Enum):
    """Result of checking whether a removal has fully taken effect."""

    GONE = "gone"
    LOCKED = "locked"
    PRESENT = "present"


class CopyPhase(Enum):
    """Steps of one atomic copy attempt, in execution order."""

    PREPARING = "preparing"
    COPYING = "copying"
    NORMALIZING = "normalizing"
    FINALIZING = "finalizing"


class DeletePhase(Enum):
    """Steps of one delete attempt, in execution order."""

    ATTEMPTING = "attempting"
    VERIFYING = "verifying"
