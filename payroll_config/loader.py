"""
Settings Loader (``payroll_config.loader``).

Responsibility
--------------
Loads payroll settings YAML files and parses them into the frozen
``PayrollSettings`` dataclass.  Computes a deterministic checksum used to
stamp each computed breakdown with the settings version that produced it.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown keys or invalid values  -> ``ValueError`` propagates.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from payroll_config.schema import PayrollSettings
from payroll_kernel.logging_config import get_logger

logger = get_logger("config.loader")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def load_settings(path: Path | str) -> PayrollSettings:
    """
    Load ``PayrollSettings`` from a YAML file.

    The file may hold the settings at the top level or under a
    ``payroll_settings`` key.
    """
    path = Path(path)
    data = load_yaml_file(path)
    if isinstance(data, dict) and "payroll_settings" in data:
        data = data["payroll_settings"] or {}
    if not isinstance(data, dict):
        raise ValueError(f"Payroll settings in {path} must be a mapping")
    settings = PayrollSettings.from_dict(data)
    logger.info(
        "payroll_settings_loaded",
        extra={
            "path": str(path),
            "checksum": compute_checksum(settings),
        },
    )
    return settings


def compute_checksum(settings: PayrollSettings) -> str:
    """
    Compute SHA-256 checksum of the canonical JSON form of the settings.

    Postconditions:
        - Identical settings always produce identical checksums.
    """
    canonical = json.dumps(settings.to_dict(), sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
