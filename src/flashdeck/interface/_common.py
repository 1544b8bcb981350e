"""Helpers shared by CLI command modules."""

import logging
from typing import Any, NoReturn

import typer
from pydantic import ValidationError

from flashdeck.application.config import AppConfig, resolve_config
from flashdeck.application.factory import build_services
from flashdeck.application.practice.service import PracticeService
from flashdeck.application.stats.service import StatsService
from flashdeck.consts import APP_NAME
from flashdeck.domain.errors import FlashdeckError


def _resolve_with_overrides(ctx: typer.Context | None = None, **overrides: Any) -> AppConfig:
    """Merge global callback options, command options and file/env config."""
    merged: dict[str, Any] = {}
    if ctx is not None and isinstance(ctx.obj, dict):
        merged.update(ctx.obj.get("overrides", {}))
    merged.update(overrides)
    try:
        config = resolve_config(merged)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"])
        fail(f"Invalid configuration for '{field}': {first['msg']}")

    if config.verbose >= 2:
        logging.getLogger(APP_NAME).setLevel(logging.DEBUG)
    elif config.verbose <= 0:
        logging.getLogger(APP_NAME).setLevel(logging.WARNING)
    return config


def _services(ctx: typer.Context) -> tuple[PracticeService, StatsService]:
    config = _resolve_with_overrides(ctx)
    try:
        return build_services(config)
    except FlashdeckError as e:
        fail(str(e))


def fail(message: str, code: int = 1) -> NoReturn:
    typer.secho(f"Error: {message}", fg="red", err=True)
    raise typer.Exit(code)
