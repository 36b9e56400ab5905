"""CLI commands for loom."""

import json
import sys
from datetime import UTC, datetime
from pathlib import Path

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from loom import __logo__, __version__
from loom.errors import LoomError

app = typer.Typer(
    name="loom",
    help=f"{__logo__} loom - Personal sensor lifelog store",
    no_args_is_help=True,
)

console = Console()

_STATE: dict[str, object] = {"config_path": None, "db": None}


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} loom v{__version__}")
        raise typer.Exit()


def _configure_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=str(level or "INFO").upper())


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
    config: Path | None = typer.Option(None, "--config", help="Config file path"),
    db: Path | None = typer.Option(None, "--db", help="Database file (overrides config)"),
    log_level: str | None = typer.Option(None, "--log-level", help="Override logging.level"),
):
    """loom - Personal sensor lifelog store."""
    from loom.config.loader import load_config

    _STATE["config_path"] = config
    _STATE["db"] = db
    cfg = load_config(config.expanduser() if config else None)
    _configure_logging(log_level or cfg.logging.level)


def _load():
    from loom.config.loader import load_config

    config_path = _STATE.get("config_path")
    return load_config(config_path.expanduser() if isinstance(config_path, Path) else None)


def _open_store():
    from loom.storage.sqlite_records import SQLiteRecordStore

    cfg = _load()
    db = _STATE.get("db")
    db_path = db.expanduser() if isinstance(db, Path) else cfg.database_path
    try:
        return SQLiteRecordStore(
            db_path,
            tuning_options=cfg.storage.tuning_options(),
            create_indexes=cfg.storage.create_indexes,
            kinds=cfg.storage.kinds or None,
        )
    except LoomError as exc:
        console.print(f"[red]Cannot open store:[/red] {exc}")
        raise typer.Exit(1) from exc


def _parse_time(value: str | None, *, option: str) -> datetime | None:
    from loom.utils.helpers import parse_timestamp

    if value is None:
        return None
    try:
        return parse_timestamp(value)
    except ValueError as exc:
        console.print(f"[red]Invalid {option}:[/red] {exc}")
        raise typer.Exit(2) from exc


# ============================================================================
# Store Commands
# ============================================================================


@app.command()
def init():
    """Create the config file (if missing) and the database schema."""
    from loom.config.loader import get_config_path, save_config

    config_path = _STATE.get("config_path")
    path = config_path.expanduser() if isinstance(config_path, Path) else get_config_path()
    cfg = _load()
    if not path.exists():
        save_config(cfg, path)
        console.print(f"[green]✓[/green] Created config at {path}")
    else:
        console.print(f"Config exists at {path}")

    store = _open_store()
    try:
        console.print(f"[green]✓[/green] Database ready (schema v{store.schema_version()})")
        console.print(f"journal={store.tuning['journal_mode']}")
    finally:
        store.close()


@app.command()
def ingest(
    table: str = typer.Argument(..., help="Kind or table name, e.g. gps or gps_data"),
    file: Path = typer.Argument(..., help="JSON array of wire-format records"),
):
    """Validate and insert a JSON array of records (all or nothing)."""
    path = file.expanduser()
    if not path.exists():
        console.print(f"[red]File not found:[/red] {path}")
        raise typer.Exit(2)

    store = _open_store()
    try:
        written = store.ingest_json(table, path.read_bytes())
    except LoomError as exc:
        console.print(f"[red]Ingest failed:[/red] {exc}")
        raise typer.Exit(1) from exc
    finally:
        store.close()
    console.print(f"[green]✓[/green] Ingested {written} records into {table}")


@app.command()
def query(
    table: str = typer.Argument(..., help="Observation kind or table name"),
    device: str = typer.Option("*", "--device", "-d", help="Device id, or * for all devices"),
    start: str = typer.Option(..., "--start", help="Inclusive ISO-8601 start"),
    end: str | None = typer.Option(None, "--end", help="Inclusive ISO-8601 end (default now)"),
    order: str | None = typer.Option(None, "--order", help="asc or desc by timestamp"),
):
    """Print matching records as a JSON array."""
    start_at = _parse_time(start, option="--start")
    end_at = _parse_time(end, option="--end") or datetime.now(UTC)

    store = _open_store()
    try:
        payload = store.query_json(table, device, start_at, end_at, order=order)
    except LoomError as exc:
        console.print(f"[red]Query failed:[/red] {exc}")
        raise typer.Exit(1) from exc
    finally:
        store.close()
    typer.echo(payload)


@app.command()
def recent(
    hours: int | None = typer.Option(None, "--hours", help="Window size (default reporting.windowHours)"),
    kind: list[str] | None = typer.Option(None, "--kind", "-k", help="Limit to these kinds"),
):
    """Print the recent-events report for every device."""
    from loom.reporting import recent_events

    cfg = _load()
    store = _open_store()
    try:
        report = recent_events(
            store,
            hours=hours or cfg.reporting.window_hours,
            kinds=kind or cfg.reporting.kinds or None,
        )
    except (LoomError, ValueError) as exc:
        console.print(f"[red]Report failed:[/red] {exc}")
        raise typer.Exit(1) from exc
    finally:
        store.close()
    typer.echo(json.dumps(report, indent=2, ensure_ascii=False))


# ============================================================================
# Retention Commands
# ============================================================================


retention_app = typer.Typer(help="Manage per-table retention policy")
app.add_typer(retention_app, name="retention")


@retention_app.command("set")
def retention_set(
    table: str = typer.Argument(..., help="Table the policy applies to"),
    days: int | None = typer.Option(None, "--days", help="Delete rows older than N days"),
    downsample_after: int | None = typer.Option(None, "--downsample-after", help="Downsample rows older than N days"),
    ratio: int | None = typer.Option(None, "--ratio", help="Keep one row in N when downsampling"),
    compression: str | None = typer.Option(None, "--compression", help="NONE, LZ4, ZSTD or GZIP"),
    convert_to_text: bool = typer.Option(False, "--convert-to-text", help="Convert media rows to text"),
    min_space_mb: int | None = typer.Option(None, "--min-space-mb", help="Free space floor in MB"),
):
    """Create or replace the retention policy for TABLE."""
    from loom.datatypes.config import RetentionConfig
    from loom.errors import SchemaError
    from loom.storage.lifecycle import LifecycleConfigStore

    now = datetime.now(UTC)
    data: dict[str, object] = {
        "table_name": table,
        "compression_enabled": compression is not None and compression.upper() != "NONE",
        "convert_to_text": convert_to_text,
        "created_at": now,
        "updated_at": now,
    }
    if compression is not None:
        data["compression_algorithm"] = compression.upper()
    for key, value in (
        ("retention_days", days),
        ("downsample_after_days", downsample_after),
        ("downsample_ratio", ratio),
        ("min_required_space_mb", min_space_mb),
    ):
        if value is not None:
            data[key] = value
    try:
        policy = RetentionConfig.from_wire_dict(data)
    except SchemaError as exc:
        console.print(f"[red]Invalid policy:[/red] {exc}")
        raise typer.Exit(1) from exc

    store = _open_store()
    try:
        stored = LifecycleConfigStore(store).set_retention(policy)
    finally:
        store.close()
    console.print(f"[green]✓[/green] Retention policy saved for {stored.table_name}")


@retention_app.command("show")
def retention_show(table: str = typer.Argument(..., help="Table name")):
    """Print the retention policy for TABLE as JSON."""
    from loom.storage.lifecycle import LifecycleConfigStore

    store = _open_store()
    try:
        policy = LifecycleConfigStore(store).get_retention(table)
    finally:
        store.close()
    if policy is None:
        console.print(f"No retention policy for {table} (kept forever)")
        raise typer.Exit(1)
    typer.echo(policy.to_wire())


@retention_app.command("list")
def retention_list():
    """List retention policies."""
    from loom.storage.lifecycle import LifecycleConfigStore

    store = _open_store()
    try:
        policies = LifecycleConfigStore(store).list_retention()
    finally:
        store.close()

    if not policies:
        console.print("No retention policies.")
        return

    table = Table(title="Retention Policies")
    table.add_column("Table", style="cyan")
    table.add_column("Retention")
    table.add_column("Downsample")
    table.add_column("Compression")
    for policy in policies:
        retention = f"{policy.retention_days}d" if policy.retention_days else "forever"
        downsample = (
            f"1/{policy.downsample_ratio} after {policy.downsample_after_days}d"
            if policy.downsample_ratio and policy.downsample_after_days
            else "-"
        )
        compression = str(policy.compression_algorithm) if policy.compression_enabled else "[dim]off[/dim]"
        table.add_row(policy.table_name, retention, downsample, compression)
    console.print(table)


# ============================================================================
# Sync Priority Commands
# ============================================================================


sync_app = typer.Typer(help="Manage per-table sync priority")
app.add_typer(sync_app, name="sync")


@sync_app.command("set")
def sync_set(
    table: str = typer.Argument(..., help="Table the policy applies to"),
    priority: str = typer.Option(..., "--priority", "-p", help="CRITICAL, HIGH, MEDIUM, LOW or BACKGROUND"),
    batch_size: int | None = typer.Option(None, "--batch-size", help="Rows per sync batch"),
    max_delay: int | None = typer.Option(None, "--max-delay", help="Max seconds before syncing"),
    retry_count: int | None = typer.Option(None, "--retry-count", help="Retries per batch"),
):
    """Create or replace the sync priority for TABLE."""
    from loom.datatypes.config import SyncPriorityConfig
    from loom.errors import SchemaError
    from loom.storage.lifecycle import LifecycleConfigStore

    now = datetime.now(UTC)
    data: dict[str, object] = {
        "table_name": table,
        "priority": priority.upper(),
        "created_at": now,
        "updated_at": now,
    }
    for key, value in (
        ("batch_size", batch_size),
        ("max_delay_seconds", max_delay),
        ("retry_count", retry_count),
    ):
        if value is not None:
            data[key] = value
    try:
        policy = SyncPriorityConfig.from_wire_dict(data)
    except SchemaError as exc:
        console.print(f"[red]Invalid policy:[/red] {exc}")
        raise typer.Exit(1) from exc

    store = _open_store()
    try:
        stored = LifecycleConfigStore(store).set_sync_priority(policy)
    finally:
        store.close()
    console.print(f"[green]✓[/green] Sync priority {stored.priority} saved for {stored.table_name}")


@sync_app.command("show")
def sync_show(table: str = typer.Argument(..., help="Table name")):
    """Print the sync priority for TABLE as JSON."""
    from loom.storage.lifecycle import LifecycleConfigStore

    store = _open_store()
    try:
        policy = LifecycleConfigStore(store).get_sync_priority(table)
    finally:
        store.close()
    if policy is None:
        console.print(f"No sync priority for {table}")
        raise typer.Exit(1)
    typer.echo(policy.to_wire())


@sync_app.command("list")
def sync_list():
    """List sync priorities, most urgent first."""
    from loom.storage.lifecycle import LifecycleConfigStore

    store = _open_store()
    try:
        policies = LifecycleConfigStore(store).list_sync_priorities()
    finally:
        store.close()

    if not policies:
        console.print("No sync priorities.")
        return

    table = Table(title="Sync Priorities")
    table.add_column("Table", style="cyan")
    table.add_column("Priority")
    table.add_column("Batch")
    table.add_column("Max Delay")
    table.add_column("Retries")
    for policy in policies:
        delay = f"{policy.max_delay_seconds}s" if policy.max_delay_seconds is not None else "-"
        table.add_row(
            policy.table_name,
            str(policy.priority),
            str(policy.batch_size),
            delay,
            str(policy.retry_count),
        )
    console.print(table)


# ============================================================================
# Config Commands
# ============================================================================


config_app = typer.Typer(help="Manage loom config")
app.add_typer(config_app, name="config")


@config_app.command("check")
def config_check(
    config: Path | None = typer.Option(None, "--config", help="Config path to validate"),
    strict: bool = typer.Option(
        False,
        "--strict",
        help="Fail when unknown keys are detected (possible typos)",
    ),
):
    """Validate config JSON structure and schema."""
    from loom.config.loader import (
        convert_keys,
        find_unknown_paths,
        get_config_path,
        load_json_file,
        normalize_config_data,
    )
    from loom.config.schema import Config

    global_path = _STATE.get("config_path")
    fallback = global_path if isinstance(global_path, Path) else get_config_path()
    config_path = (config or fallback).expanduser()
    if not config_path.exists():
        console.print(f"[red]Config file not found:[/red] {config_path}")
        raise typer.Exit(2)

    try:
        raw = load_json_file(config_path)
    except json.JSONDecodeError as exc:
        console.print(f"[red]Invalid JSON:[/red] {exc}")
        raise typer.Exit(2) from exc
    except (OSError, ValueError) as exc:
        console.print(f"[red]Failed to read config:[/red] {exc}")
        raise typer.Exit(2) from exc

    try:
        normalized = normalize_config_data(raw)
        cfg = Config.model_validate(convert_keys(normalized))
    except ValueError as exc:
        console.print(f"[red]Schema validation failed:[/red] {exc}")
        raise typer.Exit(1) from exc

    unknown_paths = find_unknown_paths(raw, normalized)
    if unknown_paths:
        console.print(
            f"[yellow]Unknown config keys detected ({len(unknown_paths)}):[/yellow]"
        )
        for item in unknown_paths[:10]:
            console.print(f"  - {item}")
        if len(unknown_paths) > 10:
            console.print(f"  - ... ({len(unknown_paths) - 10} more)")
        if strict:
            raise typer.Exit(1)

    console.print("[green]✓[/green] Config validation passed")
    console.print(f"path={config_path}")
    console.print(f"database={cfg.storage.path or '<default>'} journal={cfg.storage.journal_mode}")
    console.print(
        "discovery="
        f"{'on' if cfg.discovery.enabled else 'off'} "
        f"{cfg.discovery.service_type}:{cfg.discovery.port}"
    )
    console.print(f"logging={cfg.logging.level} reportWindow={cfg.reporting.window_hours}h")


if __name__ == "__main__":
    app()
