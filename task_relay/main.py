"""CLI entry point for task-relay."""

import asyncio
import json
import sys
from pathlib import Path
from typing import Any

import click
import structlog

from task_relay.config.settings import RelaySettings
from task_relay.engine.host import LocalTriggerHost
from task_relay.engine.orchestrator import TaskOrchestrator
from task_relay.enums import TaskStatus
from task_relay.example_graph import EXAMPLE_TASK_IDS, build_example_registry, run_example
from task_relay.exceptions import ConfigurationError, TaskRelayError
from task_relay.models.domain import TaskRecord
from task_relay.store import DELETE_FIELD, TaskStoreClient, create_store
from task_relay.utils.alerts import LogAlertNotifier
from task_relay.utils.logging_config import configure_logging

log = structlog.get_logger(__name__)


def _build_client(settings: RelaySettings) -> TaskStoreClient:
    return TaskStoreClient(
        create_store(settings),
        LogAlertNotifier(),
        retry_attempts=settings.retry.attempts,
        retry_base_delay=settings.retry.base_delay,
    )


@click.group()
@click.option("--config", default=None, help="Path to YAML configuration file")
@click.option("--log-level", default=None, help="Logging level (overrides configuration)")
@click.pass_context
def cli(ctx: click.Context, config: str | None, log_level: str | None) -> None:
    """task-relay: DAG task orchestration driven by record-created events."""
    try:
        if config is not None:
            if not Path(config).exists():
                click.echo(f"Error: Configuration file not found: {config}", err=True)
                sys.exit(1)
            settings = RelaySettings.from_yaml(config)
        else:
            settings = RelaySettings()
    except ConfigurationError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)

    configure_logging(log_level or settings.log_level)
    ctx.obj = {"settings": settings}


@cli.command()
@click.pass_context
def demo(ctx: click.Context) -> None:
    """Run the five-task example graph and print every record."""
    settings: RelaySettings = ctx.obj["settings"]
    try:
        records = asyncio.run(_run_demo(settings))
    except TaskRelayError as e:
        click.echo(f"Error: {e.message}", err=True)
        log.debug("demo_error", exc_info=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        sys.exit(130)

    for task_id, record in records.items():
        click.echo(f"{task_id}: {json.dumps(record, sort_keys=True)}")


@cli.command()
@click.argument("task_id")
@click.pass_context
def show(ctx: click.Context, task_id: str) -> None:
    """Print one task record as JSON."""
    settings: RelaySettings = ctx.obj["settings"]
    try:
        record = asyncio.run(_show(settings, task_id))
    except TaskRelayError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)

    if record is None:
        click.echo(f"No record for task: {task_id}", err=True)
        sys.exit(1)

    click.echo(json.dumps(record.to_document(), indent=2, sort_keys=True))


@cli.command("set-status")
@click.argument("task_id")
@click.argument("status", type=click.Choice([s.value for s in TaskStatus]))
@click.option("--error", "error_message", default=None, help="Error message to record (rejected only)")
@click.pass_context
def set_status(ctx: click.Context, task_id: str, status: str, error_message: str | None) -> None:
    """Overwrite the status of a task record (operator override).

    Fields that do not belong to the new status are removed: ``error`` unless
    the status is rejected, ``output`` unless it is fulfilled.
    """
    new_status = TaskStatus(status)
    if error_message is not None and new_status is not TaskStatus.REJECTED:
        raise click.UsageError("--error can only be given with status 'rejected'")

    settings: RelaySettings = ctx.obj["settings"]
    extra: dict[str, Any] = {}
    if new_status is TaskStatus.REJECTED:
        if error_message is not None:
            extra["error"] = error_message
    else:
        extra["error"] = DELETE_FIELD
    if new_status is not TaskStatus.FULFILLED:
        extra["output"] = DELETE_FIELD

    try:
        asyncio.run(_set_status(settings, task_id, new_status, extra))
    except TaskRelayError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)

    click.echo(f"{task_id}: {status}")


async def _show(settings: RelaySettings, task_id: str) -> TaskRecord | None:
    client = _build_client(settings)
    try:
        return await client.get_record(task_id)
    finally:
        await client.close()


async def _set_status(settings: RelaySettings, task_id: str, status: TaskStatus, extra: dict[str, Any]) -> None:
    client = _build_client(settings)
    try:
        await client.set_status(task_id, status, extra)
    finally:
        await client.close()


async def _run_demo(settings: RelaySettings) -> dict[str, dict]:
    """Run the example graph and return the final records."""
    client = _build_client(settings)
    try:
        orchestrator = TaskOrchestrator(client, client.notifier)
        host = LocalTriggerHost(build_example_registry(), orchestrator, client)

        await run_example(host)

        records = {}
        for task_id in EXAMPLE_TASK_IDS:
            record = await client.get_record(task_id)
            records[task_id] = record.to_document() if record is not None else {}
        return records
    finally:
        await client.close()


def main() -> None:
    """Console script entry point."""
    cli()


if __name__ == "__main__":
    main()
