"""Run configuration for sync and verification runs."""

from dataclasses import dataclass


@dataclass(frozen=True)
class RunConfig:
    """Flags controlling a single sync or verification run."""

    dry_run: bool = False
    """Count intended actions without uploading or deleting anything"""

    force_upload: bool = False
    """Sync: upload every local file, even if it already exists remotely"""

    reupload_missing: bool = False
    """Verify: upload local files that are missing remotely"""

    delete_orphans: bool = False
    """Verify: delete remote objects no library item references"""

    cleanup_local: bool = False
    """Verify: delete local copies of files that are stored remotely"""
