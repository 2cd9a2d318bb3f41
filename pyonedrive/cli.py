"""CLI interface for pyonedrive."""

import logging
import threading
from pathlib import Path
from typing import Any, Optional

import click

from .api import OneDriveClient
from .cli_progress import PlainEventPrinter, SyncProgressDisplay
from .config import config
from .exceptions import OneDriveAPIError, OneDriveConfigError, OneDriveError
from .output import OutputFormatter
from .quickxor import hash_file
from .sync import SyncEngine, SyncStateManager, build_exclude_predicate
from .utils import DEFAULT_MAX_WORKERS, parse_iso_timestamp

logger = logging.getLogger(__name__)


def _create_client(ctx: Any) -> OneDriveClient:
    """Create an API client from the context settings or exit."""
    out: OutputFormatter = ctx.obj["out"]
    try:
        return OneDriveClient(access_token=ctx.obj["access_token"])
    except OneDriveConfigError as e:
        out.error(str(e))
        ctx.exit(1)
        raise  # unreachable, ctx.exit raises


@click.group()
@click.option(
    "--access-token",
    "-t",
    envvar="ONEDRIVE_ACCESS_TOKEN",
    help="Microsoft Graph access token",
)
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option("--json", is_flag=True, help="Output in JSON format")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose/debug logging output",
)
@click.version_option(package_name="pyonedrive")
@click.pass_context
def main(
    ctx: Any,
    access_token: Optional[str],
    quiet: bool,
    json: bool,
    verbose: bool,
) -> None:
    """pyonedrive - Mirror OneDrive folders to a local directory."""
    ctx.ensure_object(dict)
    ctx.obj["access_token"] = access_token
    ctx.obj["out"] = OutputFormatter(json_output=json, quiet=quiet)

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("pyonedrive").setLevel(logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)


@main.command()
@click.option(
    "--access-token",
    "-t",
    prompt="Enter your Microsoft Graph access token",
    hide_input=True,
    help="Microsoft Graph access token",
)
@click.pass_context
def init(ctx: Any, access_token: str) -> None:
    """Store an access token for future use.

    The token is saved in ~/.config/pyonedrive/config.
    """
    out: OutputFormatter = ctx.obj["out"]

    out.info("Validating access token...")
    client = OneDriveClient(access_token=access_token)
    try:
        user = client.get_logged_user()
        out.success(f"✓ Token is valid for {user.get('displayName', 'unknown user')}")
    except OneDriveAPIError as e:
        out.error(f"Token validation failed: {e}")
        if not click.confirm("Save token anyway?", default=False):
            out.warning("Configuration cancelled.")
            ctx.exit(1)
    finally:
        client.close()

    try:
        config_path = config.save_access_token(access_token)
    except OSError as e:
        out.error(f"Could not write configuration: {e}")
        ctx.exit(1)
        return

    out.print_summary(
        "Initialization Complete",
        [
            ("Status", "✓ Configuration saved successfully"),
            ("Config file", str(config_path)),
        ],
    )


@main.command()
@click.argument("remote_path", type=str, required=False, default="")
@click.pass_context
def ls(ctx: Any, remote_path: str) -> None:
    """List the content of a remote folder.

    REMOTE_PATH: Folder path relative to the drive root (default: root)
    """
    out: OutputFormatter = ctx.obj["out"]
    client = _create_client(ctx)

    try:
        items = client.list_folder(remote_path.strip("/"))
    except OneDriveAPIError as e:
        out.error(f"Failed to list '{remote_path or '/'}': {e}")
        ctx.exit(1)
        return
    finally:
        client.close()

    items.sort(key=lambda item: (not item.is_folder, item.name.lower()))

    if out.json_output:
        out.print_json([item.to_dict() for item in items])
        return

    if not items:
        out.info("Folder is empty.")
        return

    rows = []
    for item in items:
        modified = parse_iso_timestamp(item.updated_at)
        rows.append(
            [
                "dir" if item.is_folder else "file",
                item.name,
                f"{item.child_count} items" if item.is_folder else item.size_formatted,
                modified.strftime("%Y-%m-%d %H:%M") if modified else "",
            ]
        )
    out.print_table(["Type", "Name", "Size", "Modified"], rows)


@main.command(name="hash")
@click.argument(
    "files",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.pass_context
def hash_command(ctx: Any, files: tuple[Path, ...]) -> None:
    """Print the QuickXorHash of local files.

    The output can be compared with the hash OneDrive reports for a file.
    """
    out: OutputFormatter = ctx.obj["out"]
    results = {}
    failed = False

    for path in files:
        try:
            results[str(path)] = hash_file(path)
        except OSError as e:
            out.error(f"Cannot read {path}: {e}")
            failed = True

    if out.json_output:
        out.print_json(results)
    else:
        for path_str, digest in results.items():
            click.echo(f"{digest}  {path_str}")

    if failed:
        ctx.exit(1)


@main.command()
@click.argument("remote_path", type=str)
@click.argument("local_path", type=click.Path(file_okay=False, path_type=Path))
@click.option(
    "--workers",
    "-w",
    type=click.IntRange(min=1),
    default=DEFAULT_MAX_WORKERS,
    show_default=True,
    help="Number of parallel downloads",
)
@click.option(
    "--ext",
    "extensions",
    multiple=True,
    help="Only sync files with this extension (repeatable, e.g. --ext mp3)",
)
@click.option(
    "--exclude",
    "-e",
    "patterns",
    multiple=True,
    help="Glob pattern of names to leave alone (repeatable)",
)
@click.option("--exclude-dot-files", is_flag=True, help="Leave dot files alone")
@click.option(
    "--exclude-dirs",
    is_flag=True,
    help="Leave directories alone instead of reporting them as errors",
)
@click.option(
    "--no-index",
    is_flag=True,
    help="Do not use or update the fingerprint index of previous runs",
)
@click.option("--no-progress", is_flag=True, help="Disable progress bars")
@click.pass_context
def sync(
    ctx: Any,
    remote_path: str,
    local_path: Path,
    workers: int,
    extensions: tuple[str, ...],
    patterns: tuple[str, ...],
    exclude_dot_files: bool,
    exclude_dirs: bool,
    no_index: bool,
    no_progress: bool,
) -> None:
    """Mirror a remote folder into a local directory.

    Downloads new and changed files, deletes local files that no longer
    exist remotely and skips files that are already up to date. Only one
    folder level is synced.

    \b
    REMOTE_PATH: Folder path relative to the drive root ("/" for the root)
    LOCAL_PATH:  Destination directory, created if missing

    Examples:
        pyonedrive sync Music/mp3 ./songs --ext mp3 --exclude-dirs
        pyonedrive sync Documents ./docs -w 10 --no-progress
    """
    out: OutputFormatter = ctx.obj["out"]
    client = _create_client(ctx)
    remote_path = remote_path.strip("/")

    exclude = build_exclude_predicate(
        extensions=extensions,
        patterns=patterns,
        exclude_dot_files=exclude_dot_files,
        exclude_directories=exclude_dirs,
    )

    state_manager = None if no_index else SyncStateManager()
    known = (
        state_manager.load_fingerprints(local_path, remote_path)
        if state_manager
        else None
    )

    engine = SyncEngine(client, max_workers=workers)
    cancel_event = threading.Event()

    out.info(f"Syncing: /{remote_path} -> {local_path}")

    try:
        if out.quiet or out.json_output:
            result = engine.sync_folder(
                remote_path,
                local_path,
                exclude=exclude,
                cancel_event=cancel_event,
                known_fingerprints=known,
            )
        elif no_progress:
            printer = PlainEventPrinter(console=out.console)
            result = engine.sync_folder(
                remote_path,
                local_path,
                exclude=exclude,
                on_event=printer.handle_event,
                cancel_event=cancel_event,
                known_fingerprints=known,
            )
        else:
            with SyncProgressDisplay(console=out.console) as display:
                result = engine.sync_folder(
                    remote_path,
                    local_path,
                    exclude=exclude,
                    on_event=display.handle_event,
                    cancel_event=cancel_event,
                    known_fingerprints=known,
                )
    except KeyboardInterrupt:
        out.warning("\nSync cancelled by user")
        ctx.exit(130)
        return
    except OneDriveError as e:
        out.error(f"Sync failed: {e}")
        ctx.exit(1)
        return
    finally:
        client.close()

    if state_manager is not None and not result.cancelled:
        state_manager.save_state(local_path, remote_path, result.fingerprints)

    if out.json_output:
        out.print_json(result.as_dict())
        return

    out.print_summary(
        "Sync Complete",
        [
            ("Downloaded", str(result.downloaded)),
            ("Skipped", str(result.skipped)),
            ("Deleted", str(result.deleted)),
            ("Errors", str(result.errors)),
        ],
    )
    if result.errors:
        out.warning(f"{result.errors} item(s) failed: {', '.join(sorted(result.failed))}")


if __name__ == "__main__":
    main()
