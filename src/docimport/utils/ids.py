"""Identifier allocation.

Snapshot IDs must be unique within one import; block IDs only within the
owning snapshot.  Both are random, so re-running an import yields fresh
IDs for the same inputs.
"""

from __future__ import annotations

import secrets
import uuid

RELATION_ID_PREFIX = "rel-"
OPTION_ID_PREFIX = "opt-"


def new_object_id() -> str:
    """Return a fresh snapshot/object ID."""
    return uuid.uuid4().hex


def new_block_id() -> str:
    """Return a fresh block ID (24 hex characters)."""
    return secrets.token_hex(12)


def new_relation_key() -> str:
    """Return an opaque relation key."""
    return secrets.token_hex(12)


def relation_id(key: str) -> str:
    """Sub-object ID of the relation definition stored under *key*."""
    return f"{RELATION_ID_PREFIX}{key}"


def new_option_id() -> str:
    return f"{OPTION_ID_PREFIX}{secrets.token_hex(12)}"
