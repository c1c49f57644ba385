"""Main entry point for the equiscan command line interface."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, TypeVar

import typer

from equiscan.core.config import EquiscanConfig, load_config, set_config
from equiscan.core.exceptions import EquiscanError, StoreUnavailableError
from equiscan.core.factory import Services, create_services
from equiscan.core.logging import configure_logging
from equiscan.core.services.orchestrator import CycleResult
from equiscan.core.services.staleness import should_refresh

from .constants import REPORT_EXIT_CODE, STORE_EXIT_CODE, SYSTEM_EXIT_CODE
from .utils import emit_error, render_table

T = TypeVar("T")

CYCLE_COLUMNS = ["cycle", "ran", "processed", "updated", "skipped", "failed"]
STATUS_COLUMNS = ["provider", "status", "last_update", "refresh_due"]


def get_services(config: EquiscanConfig) -> Services:
    """Factory hook for obtaining wired :class:`Services`."""

    return create_services(config)


def _config(ctx: typer.Context) -> EquiscanConfig:
    ctx.ensure_object(dict)
    return ctx.obj["config"]


def _run(ctx: typer.Context, action: Callable[[Services], Awaitable[T]]) -> T:
    services = get_services(_config(ctx))

    async def _execute() -> T:
        try:
            return await action(services)
        finally:
            await services.close()

    try:
        return asyncio.run(_execute())
    except StoreUnavailableError as error:
        emit_error(error.message, error.error_code, details=error.details)
        raise typer.Exit(code=STORE_EXIT_CODE) from error
    except EquiscanError as error:
        emit_error(error.message, error.error_code, details=error.details)
        raise typer.Exit(code=SYSTEM_EXIT_CODE) from error


def _render_cycles(ctx: typer.Context, results: list[CycleResult]) -> None:
    render_table([asdict(result) for result in results], CYCLE_COLUMNS, no_color=ctx.obj.get("no_color", False))


def _format_timestamp(value: int) -> str | None:
    if value == 0:
        return None
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc).isoformat(timespec="seconds")


def create_app() -> typer.Typer:
    """Create a Typer application instance for equiscan."""

    app = typer.Typer(add_completion=False, help="equiscan command line interface")

    @app.callback()
    def main(
        ctx: typer.Context,
        config_path: Path | None = typer.Option(
            None,
            "--config",
            "-c",
            help="TOML configuration file.",
        ),
        log_level: str | None = typer.Option(
            None,
            "--log-level",
            help="Log level overriding the configuration.",
        ),
        no_color: bool = typer.Option(
            False,
            "--no-color",
            help="Disable colorized table output.",
        ),
    ) -> None:
        ctx.ensure_object(dict)
        try:
            config = load_config(config_path)
        except FileNotFoundError as exc:
            raise typer.BadParameter(str(exc), param_hint="--config") from exc

        if log_level:
            config.logging.level = log_level.upper()
        file_path = config.logging.file_path
        configure_logging(
            config.logging.level,
            file_output=file_path is not None,
            file_path=str(file_path) if file_path else None,
        )
        set_config(config)
        ctx.obj.update({"config": config, "no_color": no_color})

    @app.command("seed")
    def seed_command(ctx: typer.Context) -> None:
        """Run the seed cycle when the universe is stale."""

        result = _run(ctx, lambda services: services.orchestrator.run_seed_cycle())
        _render_cycles(ctx, [result])

    @app.command("update")
    def update_command(ctx: typer.Context) -> None:
        """Run the detail cycle when financial data is stale."""

        result = _run(ctx, lambda services: services.orchestrator.run_detail_cycle())
        _render_cycles(ctx, [result])

    @app.command("report")
    def report_command(ctx: typer.Context) -> None:
        """Write the monthly spreadsheet report."""

        path = _run(ctx, lambda services: services.report_builder.generate())
        if path is None:
            emit_error("Report was not written, see logs for details.", "REPORT_NOT_WRITTEN")
            raise typer.Exit(code=REPORT_EXIT_CODE)
        typer.echo(str(path))

    @app.command("refresh")
    def refresh_command(ctx: typer.Context) -> None:
        """Run seed and detail cycles, then write the report."""

        async def _refresh(services: Services) -> tuple[list[CycleResult], Path | None]:
            seed = await services.orchestrator.run_seed_cycle()
            detail = await services.orchestrator.run_detail_cycle()
            return [seed, detail], await services.report_builder.generate()

        results, path = _run(ctx, _refresh)
        _render_cycles(ctx, results)
        if path is None:
            emit_error("Report was not written, see logs for details.", "REPORT_NOT_WRITTEN")
            raise typer.Exit(code=REPORT_EXIT_CODE)
        typer.echo(str(path))

    @app.command("status")
    def status_command(ctx: typer.Context) -> None:
        """Show provider states and the number of cached records."""

        config = _config(ctx)

        async def _status(services: Services) -> tuple[list[dict[str, Any]], int]:
            rows = []
            for provider in (services.seed_provider, services.detail_provider):
                state = await provider.get_state()
                rows.append(
                    {
                        "provider": provider.name,
                        "status": state.status.value,
                        "last_update": _format_timestamp(state.last_update),
                        "refresh_due": should_refresh(
                            state.last_update, state.status, window_hours=config.refresh.window_hours
                        ),
                    }
                )
            return rows, len(await services.repository.list_record_keys())

        rows, record_count = _run(ctx, _status)
        render_table(rows, STATUS_COLUMNS, no_color=ctx.obj.get("no_color", False))
        typer.echo(f"records: {record_count}")

    return app


app = create_app()

__all__ = ["app", "create_app", "get_services"]
