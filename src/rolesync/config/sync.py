"""Reconciliation scheduling defaults."""

from __future__ import annotations

from dataclasses import dataclass

from .env import positive_float_env, positive_int_env

DEFAULT_INTERVAL_SECONDS = 60.0
DEFAULT_MEMBER_CONCURRENCY = 8


@dataclass(frozen=True, slots=True)
class SyncConfig:
    interval_seconds: float = DEFAULT_INTERVAL_SECONDS
    member_concurrency: int = DEFAULT_MEMBER_CONCURRENCY


def get_sync_config() -> SyncConfig:
    return SyncConfig(
        interval_seconds=positive_float_env("ROLESYNC_INTERVAL_SECONDS", DEFAULT_INTERVAL_SECONDS),
        member_concurrency=positive_int_env(
            "ROLESYNC_MEMBER_CONCURRENCY", DEFAULT_MEMBER_CONCURRENCY
        ),
    )
