"""
payroll_config -- payroll settings schema and loading.

Responsibility:
    Defines ``PayrollSettings`` and provides ``get_default_settings()``, which
    loads the packaged ``defaults.yaml``.  Tenant settings are loaded with
    ``load_settings(path)`` or built with ``PayrollSettings.from_dict``.

Architecture position:
    Configuration -- sits above ``payroll_kernel`` and below
    ``payroll_engines`` / ``payroll_modules`` / ``payroll_services``.
"""

from __future__ import annotations

from pathlib import Path

from payroll_config.loader import compute_checksum, load_settings
from payroll_config.schema import (
    PayrollSettings,
    ProratedAllowanceRule,
    RecalculationPolicy,
    StatutoryDeductionRule,
)

DEFAULT_SETTINGS_PATH = Path(__file__).parent / "defaults.yaml"


def get_default_settings() -> PayrollSettings:
    """Load the packaged default settings."""
    return load_settings(DEFAULT_SETTINGS_PATH)


__all__ = [
    "DEFAULT_SETTINGS_PATH",
    "PayrollSettings",
    "ProratedAllowanceRule",
    "RecalculationPolicy",
    "StatutoryDeductionRule",
    "compute_checksum",
    "get_default_settings",
    "load_settings",
]
