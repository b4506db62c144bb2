"""Command-line interface for MkvBatchFlow."""

import sys
from pathlib import Path

import click

from mkvbatchflow import __version__
from mkvbatchflow.config import load_config
from mkvbatchflow.core.errors import MkvBatchFlowError
from mkvbatchflow.core.scanner import MediaInfoScanner, discover_files, load_mediainfo_file
from mkvbatchflow.core.session import BatchSession
from mkvbatchflow.core.validation import has_blocking_errors
from mkvbatchflow.models.file import ScannedFile
from mkvbatchflow.models.language import UNDETERMINED
from mkvbatchflow.models.track import TRACK_TYPE_LABELS, parse_track_type
from mkvbatchflow.models.validation import ValidationResult
from mkvbatchflow.utils.logger import get_logger, setup_logging

EDITABLE_PROPERTIES = ("language", "name", "default", "forced", "enabled")
TRUE_VALUES = ("1", "true", "yes", "on")
FALSE_VALUES = ("0", "false", "no", "off")

SEVERITY_COLORS = {"error": "red", "warning": "yellow", "info": "cyan"}


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration file (defaults to built-in defaults)",
)
@click.pass_context
def cli(ctx, config):
    """MkvBatchFlow - Batch edit Matroska track properties with mkvpropedit."""
    try:
        cfg = load_config(config)
        ctx.ensure_object(dict)
        ctx.obj["config"] = cfg

        setup_logging(cfg.logging)

    except Exception as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        sys.exit(1)


def batch_options(command):
    """Options shared by commands that build a batch."""
    decorators = [
        click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True, path_type=Path)),
        click.option(
            "--recursive/--no-recursive",
            "-r/-R",
            default=True,
            help="Scan subdirectories recursively (default: True)",
        ),
        click.option("--title", default=None, help="Set the segment title of every file"),
        click.option(
            "--set",
            "edits",
            multiple=True,
            metavar="TYPE:TRACK:PROPERTY=VALUE",
            help="Edit a track of every file, e.g. 'audio:1:language=jpn' (TRACK is 1-based)",
        ),
        click.option(
            "--statistics-tags",
            type=click.Choice(["add", "delete"]),
            default=None,
            help="Add or delete track statistics tags",
        ),
    ]
    for decorator in reversed(decorators):
        command = decorator(command)
    return command


def _load_files(paths: tuple[Path, ...], recursive: bool, scanner: MediaInfoScanner) -> list[ScannedFile]:
    """Scan media files, or load saved MediaInfo JSON reports (``*.json``)."""
    scanned = []
    for path in paths:
        if path.is_file() and path.suffix.lower() == ".json":
            scanned.append(load_mediainfo_file(path))
            continue
        for media_file in discover_files(path, recursive=recursive):
            scanned.append(scanner.scan(media_file))
    return scanned


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in TRUE_VALUES:
        return True
    if lowered in FALSE_VALUES:
        return False
    raise click.BadParameter(f"Expected a boolean value, got {value!r}", param_hint="--set")


def _apply_edit(session: BatchSession, edit: str) -> None:
    """Apply one ``TYPE:TRACK:PROPERTY=VALUE`` edit to the global slots."""
    try:
        selector, value = edit.split("=", 1)
        type_name, track_number, property_name = selector.split(":")
        track_type = parse_track_type(type_name)
        index = int(track_number) - 1
    except ValueError:
        raise click.BadParameter(
            f"Invalid edit {edit!r}, expected TYPE:TRACK:PROPERTY=VALUE", param_hint="--set"
        ) from None

    property_name = property_name.strip().lower()
    if property_name not in EDITABLE_PROPERTIES:
        raise click.BadParameter(
            f"Unknown property {property_name!r}, expected one of {', '.join(EDITABLE_PROPERTIES)}",
            param_hint="--set",
        )

    tracks = session.batch.get_track_list_for_type(track_type)
    if not 0 <= index < len(tracks):
        raise click.BadParameter(
            f"{TRACK_TYPE_LABELS[track_type]} track {track_number} does not exist "
            f"(batch has {len(tracks)})",
            param_hint="--set",
        )

    if property_name == "language":
        parsed = session.factory.resolve_language(value)
        if parsed == UNDETERMINED and value.strip().lower() not in ("und", "undetermined"):
            raise click.BadParameter(f"Unknown language {value!r}", param_hint="--set")
    elif property_name == "name":
        parsed = value
    else:
        parsed = _parse_bool(value)

    session.batch.set_track_property(track_type, index, property_name, parsed)


def _build_session(ctx, paths, recursive, title, edits, statistics_tags) -> BatchSession:
    config = ctx.obj["config"]
    session = BatchSession(config)
    scanner = MediaInfoScanner(config.mediainfo.path, config.mediainfo.timeout_seconds)

    try:
        files = _load_files(paths, recursive, scanner)
    except Exception as e:
        get_logger(__name__).exception("Scan failed")
        click.secho(f"✗ Error scanning: {e}", fg="red", err=True)
        sys.exit(1)

    if not files:
        click.secho("⊘ No Matroska files found", fg="yellow")
        sys.exit(0)

    try:
        session.add_files(files)
    except MkvBatchFlowError as e:
        click.secho(f"✗ {e}", fg="red", err=True)
        sys.exit(1)

    if title is not None:
        session.batch.title = title
        session.batch.should_modify_title = True

    if statistics_tags is not None:
        session.batch.should_modify_track_statistics_tags = True
        session.batch.add_track_statistics_tags = statistics_tags == "add"
        session.batch.delete_track_statistics_tags = statistics_tags == "delete"

    for edit in edits:
        _apply_edit(session, edit)

    click.echo(f"Loaded {len(session.files)} file(s)")
    return session


def _echo_results(results: list[ValidationResult]) -> None:
    for result in results:
        color = SEVERITY_COLORS.get(result.severity.value)
        click.secho(str(result), fg=color, err=result.is_error)


@cli.command()
@batch_options
@click.pass_context
def validate(ctx, paths, recursive, title, edits, statistics_tags):
    """Check that the files can be edited as one batch."""
    session = _build_session(ctx, paths, recursive, title, edits, statistics_tags)
    results = session.validate()

    if not results:
        click.secho("✓ No validation issues", fg="green")
        sys.exit(0)

    _echo_results(results)
    sys.exit(1 if has_blocking_errors(results) else 0)


@cli.command()
@batch_options
@click.pass_context
def preview(ctx, paths, recursive, title, edits, statistics_tags):
    """Print the mkvpropedit commands the batch would run."""
    session = _build_session(ctx, paths, recursive, title, edits, statistics_tags)
    results = session.validate()
    _echo_results(results)

    commands = session.preview()
    if not commands:
        click.secho("⊘ No changes", fg="yellow")
    for command in commands:
        click.echo(f"{session.config.mkvpropedit.path} {command}")

    sys.exit(1 if has_blocking_errors(results) else 0)


@cli.command()
@batch_options
@click.option("--dry-run", is_flag=True, default=False, help="Show what would be done without running mkvpropedit")
@click.pass_context
def apply(ctx, paths, recursive, title, edits, statistics_tags, dry_run):
    """Apply the batch edits with mkvpropedit."""
    session = _build_session(ctx, paths, recursive, title, edits, statistics_tags)

    validation = session.validate()
    _echo_results(validation)
    if has_blocking_errors(validation):
        click.secho("✗ Batch blocked by validation errors", fg="red", err=True)
        sys.exit(1)

    results = session.apply(dry_run=True if dry_run else None)

    counts = {"success": 0, "warning": 0, "skipped": 0, "failed": 0, "dry_run": 0}
    for result in results:
        counts[result.status] += 1
        if result.status == "success":
            click.secho(f"  {result}", fg="green")
        elif result.status in ("warning", "skipped"):
            click.secho(f"  {result}", fg="yellow")
        elif result.status == "dry_run":
            click.secho(f"  {result}", fg="cyan")
        else:
            click.secho(f"  {result}", fg="red")

    click.echo("=" * 60)
    click.echo("Summary:")
    click.secho(f"  ✓ Success:  {counts['success']}", fg="green")
    click.secho(f"  ! Warnings: {counts['warning']}", fg="yellow")
    click.secho(f"  ⊙ Dry run:  {counts['dry_run']}", fg="cyan")
    click.secho(f"  ⊘ Skipped:  {counts['skipped']}", fg="yellow")
    click.secho(f"  ✗ Failed:   {counts['failed']}", fg="red")
    click.echo(f"  Total:      {len(results)}")

    if counts["failed"] > 0:
        sys.exit(1)


@cli.command()
@click.pass_context
def version(ctx):
    """Show version information."""
    click.echo(f"MkvBatchFlow v{__version__}")


def main():
    """Entry point for the CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
