"""Shared CLI plumbing: settings, store and service construction."""

import datetime as dt
from typing import Optional

import click
from pydantic import ValidationError

from reconciliation.calculators.period_utils import MonthPeriod
from reconciliation.cli.error_handlers import ConfigurationError
from reconciliation.config.settings import ReconciliationConfig, get_config
from reconciliation.services.postgrest_store import PostgrestRecordStore
from reconciliation.services.reconciliation_service import (
    FinancialsService,
    PayoutService,
)
from reconciliation.services.record_store import RecordStore


def load_settings(ctx: click.Context) -> ReconciliationConfig:
    """Settings from ``ctx.obj["config"]``, else from the environment.

    Raises:
        ConfigurationError: If required settings are missing or invalid
    """
    settings = ctx.obj.get("config")
    if settings is not None:
        return settings
    try:
        settings = get_config()
    except ValidationError as e:
        fields = ", ".join(
            str(error["loc"][0]) for error in e.errors() if error.get("loc")
        )
        raise ConfigurationError(
            f"Invalid or missing settings: {fields}",
            recovery_hint="Set SUPABASE_URL and SUPABASE_SERVICE_KEY in .env",
        ) from e
    ctx.obj["config"] = settings
    return settings


def get_store(ctx: click.Context) -> RecordStore:
    """Store from ``ctx.obj["store"]``, else a PostgREST store from settings."""
    store = ctx.obj.get("store")
    if store is None:
        store = PostgrestRecordStore.from_config(load_settings(ctx))
        ctx.obj["store"] = store
    return store


def financials_service(ctx: click.Context) -> FinancialsService:
    return FinancialsService.from_config(get_store(ctx), load_settings(ctx))


def payout_service(ctx: click.Context) -> PayoutService:
    return PayoutService.from_config(get_store(ctx), load_settings(ctx))


def parse_month_option(
    ctx: click.Context, param: click.Parameter, value: Optional[str]
) -> Optional[MonthPeriod]:
    """Click callback turning ``YYYY-MM`` into a MonthPeriod."""
    if value is None:
        return None
    try:
        return MonthPeriod.parse(value)
    except ValueError:
        raise click.BadParameter(f"Invalid month: {value}. Expected YYYY-MM")


def parse_date_option(
    ctx: click.Context, param: click.Parameter, value: Optional[str]
) -> Optional[dt.date]:
    """Click callback turning ``YYYY-MM-DD`` into a date."""
    if value is None:
        return None
    try:
        return dt.datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise click.BadParameter(f"Invalid date: {value}. Expected YYYY-MM-DD")
