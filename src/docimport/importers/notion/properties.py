"""Notion property values to relation formats, detail values and options.

=========================  ===================  ========================
Notion kind                Local format         Detail value
=========================  ===================  ========================
title                      (the ``name`` key)   plain text
rich_text                  longText             plain text
number                     number               number
select / multi_select      tag                  option names
status                     status               option names
date                       date                 ISO-8601 start
people                     object               user names (as options)
files                      file                 file URLs
checkbox                   checkbox             bool
url / email / phone        url / email / phone  string
formula                    per ``formula.type`` computed value
relation                   object               local object IDs
rollup                     per ``rollup.type``  number, date or strings
created/last_edited_time   date                 ISO-8601 timestamp
created/last_edited_by     object               user name
=========================  ===================  ========================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from docimport.models import RelationFormat, RelationOption

from .rich_text import map_color, plain_text

TITLE = "title"

# Kinds whose inline value may be truncated in the page object; the full
# value is read from ``GET /pages/{id}/properties/{prop}``.
PAGINATED_KINDS: frozenset[str] = frozenset({"rich_text", "people", "relation"})

_FORMATS: dict[str, RelationFormat] = {
    "rich_text": RelationFormat.LONG_TEXT,
    "number": RelationFormat.NUMBER,
    "select": RelationFormat.TAG,
    "multi_select": RelationFormat.TAG,
    "status": RelationFormat.STATUS,
    "date": RelationFormat.DATE,
    "people": RelationFormat.OBJECT,
    "files": RelationFormat.FILE,
    "checkbox": RelationFormat.CHECKBOX,
    "url": RelationFormat.URL,
    "email": RelationFormat.EMAIL,
    "phone_number": RelationFormat.PHONE,
    "relation": RelationFormat.OBJECT,
    "created_time": RelationFormat.DATE,
    "last_edited_time": RelationFormat.DATE,
    "created_by": RelationFormat.OBJECT,
    "last_edited_by": RelationFormat.OBJECT,
}

_FORMULA_FORMATS: dict[str, RelationFormat] = {
    "string": RelationFormat.SHORT_TEXT,
    "number": RelationFormat.NUMBER,
    "boolean": RelationFormat.CHECKBOX,
    "date": RelationFormat.DATE,
}

_ROLLUP_FORMATS: dict[str, RelationFormat] = {
    "number": RelationFormat.NUMBER,
    "date": RelationFormat.DATE,
    "array": RelationFormat.SHORT_TEXT,
}


@dataclass
class PropertyValue:
    """Detail value of one property plus the options it references."""

    value: Any
    options: list[RelationOption] = field(default_factory=list)


def relation_format(prop: dict[str, Any]) -> RelationFormat:
    """Local format for a property, from a page value or a database schema.

    Formulas and rollups take the format of their result type; in a
    database schema the result type is unknown and short text is used.
    """
    kind = prop.get("type", "")
    if kind == "formula":
        return _FORMULA_FORMATS.get((prop.get("formula") or {}).get("type", ""), RelationFormat.SHORT_TEXT)
    if kind == "rollup":
        return _ROLLUP_FORMATS.get((prop.get("rollup") or {}).get("type", ""), RelationFormat.SHORT_TEXT)
    return _FORMATS.get(kind, RelationFormat.SHORT_TEXT)


def is_title(prop: dict[str, Any]) -> bool:
    return prop.get("type") == TITLE


def page_title(properties: dict[str, Any]) -> str:
    """Plain text of the page's ``title`` property."""
    for prop in properties.values():
        if isinstance(prop, dict) and is_title(prop):
            return plain_text(prop.get(TITLE))
    return ""


def merge_items(kind: str, items: list[dict[str, Any]]) -> dict[str, Any]:
    """Rebuild an inline property value from paginated property items."""
    if kind in (TITLE, "rich_text", "people", "relation"):
        return {"type": kind, kind: [item.get(kind) for item in items if item.get(kind)]}
    return items[0] if items else {"type": kind}


def extract_value(prop: dict[str, Any], object_ids: dict[str, str] | None = None) -> PropertyValue:
    """Convert one page property value.

    Parameters
    ----------
    prop:
        The property object (``page["properties"][name]``).
    object_ids:
        Notion ID -> local ID, used for ``relation`` values.  Targets
        outside the import are dropped.
    """
    kind = prop.get("type", "")
    raw = prop.get(kind)

    if kind in (TITLE, "rich_text"):
        return PropertyValue(plain_text(raw))
    if kind in ("number", "checkbox", "url", "email", "phone_number"):
        return PropertyValue(raw)
    if kind == "select" or kind == "status":
        if not raw:
            return PropertyValue([])
        option = _option(raw)
        return PropertyValue([option.name], [option])
    if kind == "multi_select":
        options = [_option(item) for item in raw or []]
        return PropertyValue([o.name for o in options], options)
    if kind == "date":
        return PropertyValue((raw or {}).get("start", ""))
    if kind == "people":
        names = [_user_name(user) for user in raw or []]
        names = [n for n in names if n]
        return PropertyValue(names, [RelationOption(name=n) for n in names])
    if kind == "files":
        return PropertyValue([url for url in (_file_url(f) for f in raw or []) if url])
    if kind == "formula":
        return PropertyValue(_formula_value(raw or {}))
    if kind == "relation":
        ids = object_ids or {}
        return PropertyValue([ids[r["id"]] for r in raw or [] if r.get("id") in ids])
    if kind == "rollup":
        return PropertyValue(_rollup_value(raw or {}))
    if kind in ("created_time", "last_edited_time"):
        return PropertyValue(raw or "")
    if kind in ("created_by", "last_edited_by"):
        return PropertyValue(_user_name(raw or {}))
    return PropertyValue(_plain_value(prop))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _option(raw: dict[str, Any]) -> RelationOption:
    return RelationOption(name=raw.get("name", ""), color=map_color(raw.get("color", "")))


def _user_name(user: dict[str, Any]) -> str:
    return user.get("name") or ""


def _file_url(file: dict[str, Any]) -> str:
    kind = file.get("type", "")
    return (file.get(kind) or {}).get("url", "") if kind in ("file", "external") else ""


def _formula_value(formula: dict[str, Any]) -> Any:
    kind = formula.get("type", "")
    value = formula.get(kind)
    if kind == "date":
        return (value or {}).get("start", "")
    return value


def _rollup_value(rollup: dict[str, Any]) -> Any:
    kind = rollup.get("type", "")
    if kind == "number":
        return rollup.get("number")
    if kind == "date":
        return (rollup.get("date") or {}).get("start", "")
    if kind == "array":
        values = [_plain_value(item) for item in rollup.get("array") or []]
        return [v for v in values if v]
    return None


def _plain_value(prop: dict[str, Any]) -> str:
    """Flatten any property value to display text (rollup array items)."""
    kind = prop.get("type", "")
    raw = prop.get(kind)
    if kind in (TITLE, "rich_text"):
        return plain_text(raw)
    if kind in ("select", "status"):
        return (raw or {}).get("name", "")
    if kind == "multi_select":
        return ", ".join(item.get("name", "") for item in raw or [])
    if kind == "date":
        return (raw or {}).get("start", "")
    if kind == "people":
        return ", ".join(_user_name(u) for u in raw or [])
    if kind == "formula":
        value = _formula_value(raw or {})
        return "" if value is None else str(value)
    if raw is None or isinstance(raw, (dict, list)):
        return ""
    if isinstance(raw, bool):
        return "true" if raw else "false"
    return str(raw)
