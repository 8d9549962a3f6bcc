"""
Versioned migration of the persisted picker record.

Each step upgrades a raw JSON record from the version it is keyed by and
returns a new record; steps run in order until the record carries
``CURRENT_VERSION``. The upgraded record is written back before it is
returned, so legacy data is rewritten on first read.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from typing import Any, TypeAlias

from picker_core.schemas import (
    CURRENT_VERSION,
    DEFAULT_GROUP_TITLE,
    Group,
    Root,
    new_id,
)

from .backends import KeyValueBackend

logger = logging.getLogger(__name__)

STORAGE_KEY = "rsp:data"

StoredRecord: TypeAlias = dict[str, Any]
IdFactory: TypeAlias = Callable[[], str]
Migration: TypeAlias = Callable[[StoredRecord, IdFactory], StoredRecord]


def _wrap_flat_record(record: StoredRecord, id_factory: IdFactory) -> StoredRecord:
    """v1: a flat ``{students, history}`` record becomes a single default group."""
    group_id = id_factory()
    return {
        "groups": {
            group_id: {
                "id": group_id,
                "title": DEFAULT_GROUP_TITLE,
                "cycles": 1,
                "students": record.get("students") or [],
                "history": record.get("history") or [],
            }
        },
        "currentGroupId": group_id,
        "version": CURRENT_VERSION,
    }


def _ensure_cycles(record: StoredRecord, id_factory: IdFactory) -> StoredRecord:
    """v2-v4: groups may lack a cycle cap."""
    groups = record.get("groups") or {}
    if not isinstance(groups, dict):
        raise ValueError("groups must be a mapping")
    upgraded: dict[str, Any] = {}
    for group_id, group in groups.items():
        if not isinstance(group, dict):
            raise ValueError(f"group {group_id} must be a mapping")
        upgraded[group_id] = dict(group) if group.get("cycles") else {**group, "cycles": 1}
    return {**record, "groups": upgraded, "version": CURRENT_VERSION}


MIGRATIONS: dict[int, Migration] = {
    1: _wrap_flat_record,
    2: _ensure_cycles,
    3: _ensure_cycles,
    4: _ensure_cycles,
}


def detect_version(record: StoredRecord) -> int:
    version = record.get("version")
    if version is None or version == 0:
        return 1
    if isinstance(version, bool) or not isinstance(version, int):
        raise ValueError(f"version must be an int, got {version!r}")
    return version


def _ensure_sane(record: StoredRecord, id_factory: IdFactory) -> bool:
    changed = False
    groups = record.get("groups")
    if groups is None:
        groups = {}
        record["groups"] = groups
        changed = True
    if not isinstance(groups, dict):
        raise ValueError("groups must be a mapping")
    groups = dict(groups)
    record["groups"] = groups
    for group_id, group in list(groups.items()):
        if isinstance(group, dict) and not group.get("id"):
            groups[group_id] = {**group, "id": group_id}
            changed = True
    current = record.get("currentGroupId")
    if not current or current not in groups:
        record["currentGroupId"] = next(iter(groups), None) or id_factory()
        changed = True
    return changed


def migrate_record(record: object, id_factory: IdFactory = new_id) -> tuple[StoredRecord, bool]:
    """Upgrade ``record`` to the current shape.

    Returns the upgraded record and whether anything changed. Raises
    ``ValueError`` for records that cannot be interpreted.
    """
    if not isinstance(record, dict):
        raise ValueError("stored record must be a JSON object")
    data: StoredRecord = dict(record)
    changed = False
    version = detect_version(data)
    while version < CURRENT_VERSION:
        step = MIGRATIONS.get(version)
        if step is None:
            raise ValueError(f"No migration from version {version}")
        data = step(data, id_factory)
        new_version = detect_version(data)
        logger.info(f"Migrated stored record from version {version} to {new_version}")
        version = new_version
        changed = True
    if version > CURRENT_VERSION:
        logger.debug(f"Stored record version {version} is newer than {CURRENT_VERSION}")
    changed = _ensure_sane(data, id_factory) or changed
    return data, changed


def default_root(id_factory: IdFactory = new_id) -> Root:
    group_id = id_factory()
    return Root(
        groups={group_id: Group(id=group_id, title=DEFAULT_GROUP_TITLE, cycles=1)},
        current_group_id=group_id,
        version=CURRENT_VERSION,
    )


def save_root(backend: KeyValueBackend, root: Root, key: str = STORAGE_KEY) -> None:
    backend.set(key, root.to_json())


def load_root(
    backend: KeyValueBackend,
    key: str = STORAGE_KEY,
    id_factory: IdFactory = new_id,
) -> Root:
    """Load, migrate and validate the stored record.

    Never raises for bad stored data: a missing or unreadable record is
    replaced by a fresh default root, which is persisted.
    """
    raw = backend.get(key)
    if not raw:
        root = default_root(id_factory)
        save_root(backend, root, key)
        return root

    try:
        record = json.loads(raw)
        migrated, changed = migrate_record(record, id_factory)
        root = Root.from_dict(migrated)
    except (ValueError, TypeError) as e:
        logger.warning(f"Failed to parse stored record under {key!r}; resetting: {e}")
        root = default_root(id_factory)
        save_root(backend, root, key)
        return root

    if changed:
        save_root(backend, root, key)
    return root
