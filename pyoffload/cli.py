"""CLI interface for PyOffload."""

import logging
from pathlib import Path
from typing import Any, Optional

import click

from .cli_progress import ItemProgressDisplay
from .config import config
from .diagnostics import check_url, run_connection_test
from .exceptions import OffloadConfigError, OffloadError
from .inventory import ManifestInventory
from .output import OutputFormatter
from .storage import S3StorageClient
from .sync import (
    ReconciliationEngine,
    RemoteIndex,
    RunConfig,
    SyncEngine,
    strip_prefix,
)
from .utils import DEFAULT_BATCH_SIZE, MAX_ORPHANS_TO_LIST

logger = logging.getLogger(__name__)


@click.group()
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option("--json", is_flag=True, help="Output in JSON format")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose/debug logging output",
)
@click.option(
    "--uploads-dir",
    "-u",
    type=click.Path(file_okay=False, path_type=Path),
    help="Local media library root (default: OFFLOAD_UPLOADS_DIR)",
)
@click.option(
    "--manifest",
    "-m",
    type=click.Path(dir_okay=False, path_type=Path),
    help="JSON inventory manifest (default: OFFLOAD_MANIFEST)",
)
@click.option("--prefix", "-p", help="Remote key prefix (default: uploads/)")
@click.version_option(package_name="pyoffload")
@click.pass_context
def main(
    ctx: Any,
    quiet: bool,
    json: bool,
    verbose: bool,
    uploads_dir: Optional[Path],
    manifest: Optional[Path],
    prefix: Optional[str],
) -> None:
    """PyOffload - Offload a media library to S3-compatible object storage."""
    ctx.ensure_object(dict)
    ctx.obj["out"] = OutputFormatter(json_output=json, quiet=quiet)
    ctx.obj["uploads_dir"] = uploads_dir
    ctx.obj["manifest"] = manifest
    ctx.obj["prefix"] = prefix

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("pyoffload").setLevel(logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)


def _create_storage(ctx: Any) -> S3StorageClient:
    return S3StorageClient(prefix=ctx.obj.get("prefix"))


def _resolve_library(ctx: Any) -> tuple[Path, ManifestInventory]:
    """Resolve the local uploads root and the inventory manifest."""
    uploads_dir = ctx.obj.get("uploads_dir") or config.uploads_dir
    manifest = ctx.obj.get("manifest") or config.manifest

    if uploads_dir is None:
        raise OffloadConfigError(
            "Uploads directory not configured. Use --uploads-dir or set "
            "OFFLOAD_UPLOADS_DIR."
        )
    if not uploads_dir.is_dir():
        raise OffloadConfigError(f"Uploads directory does not exist: {uploads_dir}")
    if manifest is None:
        raise OffloadConfigError(
            "Inventory manifest not configured. Use --manifest or set OFFLOAD_MANIFEST."
        )
    logger.debug(f"Library root: {uploads_dir}, manifest: {manifest}")
    return uploads_dir, ManifestInventory(manifest)


@main.command()
@click.option("--access-key", prompt="Access key", help="Storage access key")
@click.option(
    "--secret-key", prompt="Secret key", hide_input=True, help="Storage secret key"
)
@click.option("--bucket", prompt="Bucket", help="Bucket name")
@click.option("--endpoint", prompt="Endpoint", help="Endpoint host")
@click.option("--cdn-url", default=None, help="Public CDN base URL")
@click.option("--uploads-dir", default=None, help="Local media library root")
@click.option("--manifest", default=None, help="JSON inventory manifest")
@click.pass_context
def init(
    ctx: Any,
    access_key: str,
    secret_key: str,
    bucket: str,
    endpoint: str,
    cdn_url: Optional[str],
    uploads_dir: Optional[str],
    manifest: Optional[str],
) -> None:
    """Initialize storage configuration.

    Stores your settings in ~/.config/pyoffload/config for future use.
    """
    out: OutputFormatter = ctx.obj["out"]

    config.save(
        OFFLOAD_ACCESS_KEY=access_key,
        OFFLOAD_SECRET_KEY=secret_key,
        OFFLOAD_BUCKET=bucket,
        OFFLOAD_ENDPOINT=endpoint,
        OFFLOAD_CDN_URL=cdn_url,
        OFFLOAD_UPLOADS_DIR=uploads_dir,
        OFFLOAD_MANIFEST=manifest,
    )

    out.print_summary(
        "Initialization Complete",
        [
            ("Status", "✓ Configuration saved successfully"),
            ("Config file", str(config.get_config_path())),
        ],
    )


@main.command()
@click.option("--dry-run", is_flag=True, help="Perform a dry run without uploads")
@click.option(
    "--force",
    is_flag=True,
    help="Re-upload all files, even if they already exist remotely",
)
@click.option(
    "--no-prefetch",
    is_flag=True,
    help="Check each file with a HEAD request instead of listing the bucket",
)
@click.option(
    "--batch-size",
    type=int,
    default=DEFAULT_BATCH_SIZE,
    show_default=True,
    help="Number of media items processed per page",
)
@click.pass_context
def sync(
    ctx: Any, dry_run: bool, force: bool, no_prefetch: bool, batch_size: int
) -> None:
    """Sync the existing media library to remote storage.

    Examples:

        pyoffload sync

        pyoffload sync --dry-run
    """
    out: OutputFormatter = ctx.obj["out"]
    options = RunConfig(dry_run=dry_run, force_upload=force)

    try:
        uploads_dir, inventory = _resolve_library(ctx)
        storage = _create_storage(ctx)
        engine = SyncEngine(storage, inventory, uploads_dir)

        out.info("Starting library synchronization...")
        if dry_run:
            out.warning("Dry run mode enabled. No files will be uploaded.")
        if force:
            out.warning("Force upload mode enabled. All files will be re-uploaded.")
            out.info("Skipping remote object listing due to --force flag.")

        remote_index = None
        if not force and not no_prefetch:
            out.info(
                f"Fetching list of existing objects under '{engine.prefix}' "
                "(this may take a while for large buckets)..."
            )
            remote_index = engine.build_remote_index(options)
            out.info(f"Found {len(remote_index)} existing objects.")

        total_items = inventory.total_count()
        if total_items == 0:
            if out.json_output:
                out.output_json(_sync_report(None, 0, dry_run))
            else:
                out.success("No attachments found to sync.")
            return

        out.info(f"Found {total_items} attachments to process.")
        with ItemProgressDisplay(
            "Syncing attachments",
            total_items,
            enabled=not (out.quiet or out.json_output),
        ) as display:
            counters = engine.run(
                options,
                remote_index=remote_index,
                prefetch_index=not no_prefetch,
                batch_size=batch_size,
                progress_callback=display.advance,
            )
    except OffloadError as e:
        out.error(str(e))
        ctx.exit(1)
        return
    except KeyboardInterrupt:
        out.warning("\nSync cancelled by user")
        ctx.exit(130)
        return

    if out.json_output:
        out.output_json(_sync_report(counters.as_dict(), total_items, dry_run))
    else:
        _display_sync_summary(out, counters, total_items, dry_run)

    if counters["files_s3_errors"] > 0:
        ctx.exit(1)


def _sync_report(
    counters: Optional[dict[str, int]], total_items: int, dry_run: bool
) -> dict:
    return {
        "dry_run": dry_run,
        "total_attachments": total_items,
        "counters": counters or {},
    }


def _display_sync_summary(
    out: OutputFormatter, counters: Any, total_items: int, dry_run: bool
) -> None:
    uploaded_label = (
        "Files that would be uploaded" if dry_run else "Files successfully uploaded"
    )
    out.print_summary(
        "Synchronization Summary",
        [
            ("Total attachments scanned", total_items),
            ("Total file operations attempted", counters["total_files_processed"]),
            (uploaded_label, counters["files_uploaded"]),
            ("Files skipped (already exist remotely)", counters["files_skipped_exists"]),
            ("Local files not found", counters["files_local_not_found"]),
            ("Upload errors", counters["files_s3_errors"]),
        ],
        styles={
            uploaded_label: "green",
            "Files skipped (already exist remotely)": "yellow",
            "Local files not found": "red",
            "Upload errors": "red",
        },
    )
    if dry_run:
        out.success("Dry run synchronization process completed.")
    else:
        out.success("Library synchronization process completed.")


@main.command()
@click.option(
    "--reupload-missing",
    is_flag=True,
    help="Re-upload local files that are missing remotely",
)
@click.option(
    "--delete-orphans",
    is_flag=True,
    help="Delete remote objects that no media item references. Use with caution.",
)
@click.option(
    "--cleanup-local",
    is_flag=True,
    help="Delete local copies of files that are stored remotely",
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Report actions without uploading or deleting anything",
)
@click.option(
    "--batch-size",
    type=int,
    default=DEFAULT_BATCH_SIZE,
    show_default=True,
    help="Number of media items processed per page",
)
@click.pass_context
def verify(
    ctx: Any,
    reupload_missing: bool,
    delete_orphans: bool,
    cleanup_local: bool,
    dry_run: bool,
    batch_size: int,
) -> None:
    """Verify the media library against remote storage.

    Examples:

        pyoffload verify

        pyoffload verify --reupload-missing --dry-run
    """
    out: OutputFormatter = ctx.obj["out"]
    options = RunConfig(
        dry_run=dry_run,
        reupload_missing=reupload_missing,
        delete_orphans=delete_orphans,
        cleanup_local=cleanup_local,
    )
    show_progress = not (out.quiet or out.json_output)

    try:
        uploads_dir, inventory = _resolve_library(ctx)
        storage = _create_storage(ctx)
        engine = ReconciliationEngine(storage, inventory, uploads_dir)

        out.info("Starting library verification...")
        if dry_run:
            out.warning("Dry run mode enabled. No actual changes will be made.")

        out.info(f"Fetching list of all objects under '{engine.prefix}'...")
        remote_index = RemoteIndex.build(storage, engine.prefix)
        out.info(f"Found {len(remote_index)} objects.")

        total_items = inventory.total_count()
        out.info(f"Phase 1: Verifying {total_items} media items...")
        with ItemProgressDisplay(
            "Verifying attachments", total_items, enabled=show_progress
        ) as display:
            result = engine.run(
                options,
                remote_index=remote_index,
                batch_size=batch_size,
                progress_callback=display.advance,
            )
    except OffloadError as e:
        out.error(str(e))
        ctx.exit(1)
        return
    except KeyboardInterrupt:
        out.warning("\nVerification cancelled by user")
        ctx.exit(130)
        return

    counters = result.counters
    if out.json_output:
        out.output_json(
            {
                "dry_run": dry_run,
                "total_attachments": result.total_items,
                "counters": counters.as_dict(),
                "orphans": result.orphans,
            }
        )
    else:
        out.info("Phase 2: Checking for orphan objects...")
        if result.orphans:
            out.warning(f"Found {len(result.orphans)} potential orphan objects.")
            if not delete_orphans:
                _list_orphans(out, result.orphans)
        else:
            out.success(f"No orphan objects found under '{engine.prefix}'.")
        _display_verify_summary(out, counters, dry_run)

    failures = (
        counters["s3_reupload_failed"]
        + counters["local_cleanup_failed"]
        + counters["s3_orphan_delete_failed"]
    )
    if failures > 0:
        ctx.exit(1)


def _list_orphans(out: OutputFormatter, orphans: list[str]) -> None:
    out.print(
        "To delete them, run again with --delete-orphans. "
        f"Listing first {MAX_ORPHANS_TO_LIST} (at most) orphan keys:"
    )
    for key in orphans[:MAX_ORPHANS_TO_LIST]:
        out.print(f"- {key}")
    if len(orphans) > MAX_ORPHANS_TO_LIST:
        out.print(f"...and {len(orphans) - MAX_ORPHANS_TO_LIST} more.")


def _display_verify_summary(out: OutputFormatter, counters: Any, dry_run: bool) -> None:
    out.print_summary(
        "Verification Summary",
        [
            ("Media items scanned", counters["wp_attachments_scanned"]),
            ("Files (versions/thumbnails) scanned", counters["wp_files_scanned"]),
            ("Local files currently on disk", counters["local_files_exist"]),
            ("Missing remotely (present locally)", counters["s3_missing"]),
            ("Re-uploaded", counters["s3_reuploaded"]),
            ("Failed re-uploads", counters["s3_reupload_failed"]),
            ("Local files cleaned up", counters["local_cleaned"]),
            ("Failed local cleanups", counters["local_cleanup_failed"]),
            ("Offloaded (local missing, remote exists)", counters["s3_exists_local_missing"]),
            ("Problematic (both missing)", counters["local_missing_s3_missing"]),
            ("Remote objects scanned", counters["s3_objects_scanned"]),
            ("Orphan objects found", counters["s3_orphans_found"]),
            ("Orphan objects deleted", counters["s3_orphans_deleted"]),
            ("Failed orphan deletes", counters["s3_orphan_delete_failed"]),
        ],
        styles={
            "Local files currently on disk": "cyan",
            "Missing remotely (present locally)": "yellow",
            "Re-uploaded": "green",
            "Failed re-uploads": "red",
            "Local files cleaned up": "green",
            "Failed local cleanups": "red",
            "Problematic (both missing)": "red",
            "Orphan objects found": "yellow",
            "Orphan objects deleted": "green",
            "Failed orphan deletes": "red",
        },
    )
    if dry_run:
        out.success("Dry run verification process completed.")
    else:
        out.success("Verification process completed.")


@main.command()
@click.pass_context
def info(ctx: Any) -> None:
    """Show configuration status and test the storage connection."""
    out: OutputFormatter = ctx.obj["out"]

    def _configured(value: Optional[str]) -> str:
        return "Configured" if value else "Not configured"

    uploads_dir = ctx.obj.get("uploads_dir") or config.uploads_dir
    manifest = ctx.obj.get("manifest") or config.manifest
    settings = {
        "bucket": config.bucket,
        "endpoint": config.endpoint,
        "region": config.region,
        "cdn_url": config.cdn_url,
        "prefix": ctx.obj.get("prefix") or config.prefix,
        "uploads_dir": str(uploads_dir) if uploads_dir else None,
        "manifest": str(manifest) if manifest else None,
        "access_key": _configured(config.access_key),
        "secret_key": _configured(config.secret_key),
        "missing": config.missing_settings(),
    }

    connection = None
    if config.is_configured():
        try:
            storage = _create_storage(ctx)
        except OffloadConfigError as e:
            out.error(str(e))
            ctx.exit(1)
            return
        out.info("Testing connection to storage...")
        connection = run_connection_test(storage)

    if out.json_output:
        out.output_json(
            {
                "settings": settings,
                "connection": connection.__dict__ if connection else None,
            }
        )
    else:
        out.print_summary(
            "Storage Configuration",
            [
                ("Bucket", settings["bucket"] or "Not configured"),
                ("Endpoint", settings["endpoint"] or "Not configured"),
                ("Region", settings["region"]),
                ("CDN URL", settings["cdn_url"] or "Not configured (using endpoint)"),
                ("Prefix", settings["prefix"]),
                ("Uploads directory", settings["uploads_dir"] or "Not configured"),
                ("Manifest", settings["manifest"] or "Not configured"),
                ("Access key", settings["access_key"]),
                ("Secret key", settings["secret_key"]),
            ],
        )
        for key in settings["missing"]:
            out.warning(f"{key} is not defined or empty.")

        if connection is None:
            out.print("Connection test: skipped (storage not configured)")
        elif connection.success:
            out.success(
                f"Connection successful ({connection.duration:.3f}s, "
                f"{connection.object_count} objects found under prefix)"
            )
        else:
            out.error(f"Connection failed: {connection.error}")
            if connection.error_detail:
                out.print(connection.error_detail)

    if connection is None or not connection.success:
        ctx.exit(1)


@main.command("check-url")
@click.argument("key")
@click.pass_context
def check_url_command(ctx: Any, key: str) -> None:
    """Check that the public URL of a stored object is accessible.

    KEY may be given with or without the remote prefix, e.g.
    "2024/01/photo.jpg" or "uploads/2024/01/photo.jpg".
    """
    out: OutputFormatter = ctx.obj["out"]

    try:
        storage = _create_storage(ctx)
    except OffloadConfigError as e:
        out.error(str(e))
        ctx.exit(1)
        return

    url = storage.url_for(strip_prefix(key, storage.prefix))
    result = check_url(url)

    if out.json_output:
        out.output_json(result.__dict__)
    elif result.accessible:
        out.success(f"Accessible: {url} (HTTP {result.status_code})")
    elif result.error:
        out.error(f"Not accessible: {url} ({result.error})")
    else:
        out.error(f"Not accessible: {url} (HTTP {result.status_code})")

    if not result.accessible:
        ctx.exit(1)


if __name__ == "__main__":
    main()
