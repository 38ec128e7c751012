"""Classification of library files against remote storage."""

from enum import Enum


class FileState(str, Enum):
    """Where copies of a library file currently exist."""

    REMOTE_MISSING = "remote_missing"
    """Local copy only; the remote object is missing"""

    BOTH_PRESENT = "both_present"
    """Local copy and remote object both exist"""

    OFFLOADED = "offloaded"
    """Remote object only; the expected state after a successful offload"""

    BOTH_MISSING = "both_missing"
    """Neither copy exists; a broken reference for the operator to resolve"""


def classify(local_exists: bool, remote_exists: bool) -> FileState:
    """Classify a file by the presence of its local and remote copies.

    Exactly one state applies to every combination.

    Examples:
        >>> classify(True, False)
        <FileState.REMOTE_MISSING: 'remote_missing'>
        >>> classify(False, True)
        <FileState.OFFLOADED: 'offloaded'>
    """
    if local_exists:
        return FileState.BOTH_PRESENT if remote_exists else FileState.REMOTE_MISSING
    return FileState.OFFLOADED if remote_exists else FileState.BOTH_MISSING
