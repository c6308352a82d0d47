"""Shared helpers for CLI command modules."""

import logging
from typing import Any

import typer

from retain.application.config import AppConfig, resolve_config
from retain.application.factory import get_progress_service
from retain.application.progress.service import ProgressService
from retain.domain.errors import RetainError


def _resolve_with_overrides(verbose_bonus: int = 0, **overrides: Any) -> AppConfig:
    """
    Resolve config, letting non-None CLI values take precedence.

    Each -v adds one step on top of the configured verbosity.
    """
    config = resolve_config({k: v for k, v in overrides.items() if v is not None})
    if verbose_bonus:
        config = config.model_copy(update={"verbose": config.verbose + verbose_bonus})
    if config.verbose >= 2:
        logging.getLogger("retain").setLevel(logging.DEBUG)
    return config


def _service_from_ctx(ctx: typer.Context) -> tuple[ProgressService, str]:
    """Build the service and pick the user id for a command invocation."""
    obj = ctx.obj or {}
    config = _resolve_with_overrides(
        data_path=obj.get("data_path"),
        catalog_path=obj.get("catalog_path"),
        verbose_bonus=obj.get("verbose_bonus") or 0,
    )
    user_id = obj.get("user_id") or config.default_user_id
    try:
        service = get_progress_service(config)
    except RetainError as e:
        typer.secho(f"Error: {e}", fg="red", err=True)
        raise typer.Exit(1) from e
    return service, user_id
