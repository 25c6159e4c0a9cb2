"""Reconciliation engine settings."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_float_env


@dataclass(frozen=True, slots=True)
class MappingConfig:
    submit_timeout_seconds: float | None = None


def get_mapping_config() -> MappingConfig:
    return MappingConfig(submit_timeout_seconds=optional_float_env("REABRIDGE_SUBMIT_TIMEOUT"))
