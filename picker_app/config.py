"""Picker configuration with YAML support."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

import yaml
from pydantic import ValidationError

from picker_core.schemas import BaseSchema
from picker_core.selection import secure_random_index, seeded_index_provider
from store.backends import SQLiteBackend
from store.migrations import STORAGE_KEY
from store.repository import PickerStore


class PickerConfig(BaseSchema):
    """Where the roster lives and how students are picked."""

    db_path: str = "data/picker.db"
    storage_key: str = STORAGE_KEY

    # "fair" draws among the least-picked students, "cycle_limited" draws
    # among students still under the group's cycle cap
    policy: Literal["fair", "cycle_limited"] = "cycle_limited"

    # Fixed seed makes picks reproducible (demos, classroom dry runs)
    seed: int | None = None

    log_level: str = "WARNING"


def load_config(yaml_path: str | Path) -> PickerConfig:
    """Read a picker YAML file.

    Raises ``FileNotFoundError`` when the file is missing and ``ValueError``
    when it is empty, not a mapping, or has bad field values.
    """
    path = Path(yaml_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict) or not data:
        raise ValueError(f"Config in {path} must be a non-empty mapping")

    try:
        return PickerConfig.from_dict(data)
    except ValidationError as e:
        raise ValueError(f"Invalid configuration in {path}: {e}") from e


def save_config(config: PickerConfig, yaml_path: str | Path, overwrite: bool = False) -> Path:
    """Write ``config`` as YAML and return the path written.

    An existing file is left alone unless ``overwrite`` is set.
    """
    path = Path(yaml_path)
    if path.exists() and not overwrite:
        raise FileExistsError(f"Config file already exists: {path}")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        yaml.safe_dump(config.to_dict(), default_flow_style=False, sort_keys=False),
        encoding="utf-8",
    )
    return path


def build_store(config: PickerConfig) -> PickerStore:
    index_provider = (
        seeded_index_provider(config.seed) if config.seed is not None else secure_random_index
    )
    return PickerStore(
        SQLiteBackend(config.db_path),
        storage_key=config.storage_key,
        policy=config.policy,
        index_provider=index_provider,
    )
