"""Public data models for docimport.

Every converter produces the same shapes: a :class:`Response` holding
:class:`Snapshot` objects (one per page, collection, relation or relation
option) plus per-object :class:`Relation` edges.  A snapshot owns a flat
list of :class:`Block` values linked by ``children_ids``; the blocks that
no other block references are the snapshot's top level.

All types are plain dataclasses and ``str`` enums with no behaviour beyond
small lookup helpers.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

# ---------------------------------------------------------------------------
# Request level enums
# ---------------------------------------------------------------------------

class ImportType(str, Enum):
    """Source format discriminator carried by every request."""

    HTML = "html"
    MARKDOWN = "markdown"
    NOTION = "notion"
    PB = "pb"


class ImportMode(str, Enum):
    """How per-item failures affect the rest of the run."""

    ALL_OR_NOTHING = "all_or_nothing"
    """Stop at the first failure and return no response."""

    IGNORE_ERRORS = "ignore_errors"
    """Record the failure and keep converting the remaining items."""


class ObjectKind(str, Enum):
    """What the host should materialise a snapshot as."""

    PAGE = "page"
    COLLECTION = "collection"
    SUB_OBJECT = "sub_object"


class RelationFormat(str, Enum):
    """Value formats a relation can hold."""

    SHORT_TEXT = "shortText"
    LONG_TEXT = "longText"
    NUMBER = "number"
    DATE = "date"
    CHECKBOX = "checkbox"
    URL = "url"
    EMAIL = "email"
    PHONE = "phone"
    FILE = "file"
    OBJECT = "object"
    STATUS = "status"
    TAG = "tag"
    EMOJI = "emoji"


LIST_FORMATS: frozenset[RelationFormat] = frozenset({
    RelationFormat.TAG,
    RelationFormat.STATUS,
})
"""Formats whose values are option IDs."""


# ---------------------------------------------------------------------------
# Block level enums
# ---------------------------------------------------------------------------

class TextStyle(str, Enum):
    PARAGRAPH = "paragraph"
    HEADER1 = "header1"
    HEADER2 = "header2"
    HEADER3 = "header3"
    QUOTE = "quote"
    CODE = "code"
    CHECKBOX = "checkbox"
    MARKED = "marked"
    NUMBERED = "numbered"
    TOGGLE = "toggle"
    CALLOUT = "callout"
    DESCRIPTION = "description"


class MarkType(str, Enum):
    BOLD = "bold"
    ITALIC = "italic"
    STRIKETHROUGH = "strikethrough"
    KEYBOARD = "keyboard"
    UNDERSCORED = "underscored"
    LINK = "link"
    MENTION = "mention"
    TEXT_COLOR = "textcolor"
    BACKGROUND_COLOR = "bgcolor"


class FileType(str, Enum):
    FILE = "file"
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    PDF = "pdf"


class LinkStyle(str, Enum):
    PAGE = "page"
    DATASET = "dataset"


class DivStyle(str, Enum):
    LINE = "line"
    DOTS = "dots"


class LayoutStyle(str, Enum):
    ROW = "row"
    COLUMN = "column"


# ---------------------------------------------------------------------------
# Detail keys and object types
# ---------------------------------------------------------------------------

class DetailKey:
    """Well-known keys in :attr:`Snapshot.details`."""

    ID = "id"
    NAME = "name"
    SOURCE = "source"
    SOURCE_FILE_PATH = "sourceFilePath"
    DESCRIPTION = "description"
    IS_FAVORITE = "isFavorite"
    IS_ARCHIVED = "isArchived"
    ICON_EMOJI = "iconEmoji"
    ICON_IMAGE = "iconImage"
    COVER_ID = "coverId"
    COVER_TYPE = "coverType"
    CREATOR = "creator"
    LAST_MODIFIED_BY = "lastModifiedBy"
    CREATED_DATE = "createdDate"
    LAST_MODIFIED_DATE = "lastModifiedDate"
    LAYOUT = "layout"
    RELATION_KEY = "relationKey"
    RELATION_FORMAT = "relationFormat"
    RELATION_OPTION_COLOR = "relationOptionColor"


class ObjectType:
    """Object type keys written into :attr:`Snapshot.object_types`."""

    PAGE = "page"
    COLLECTION = "collection"
    RELATION = "relation"
    RELATION_OPTION = "relationOption"


COVER_TYPE_IMAGE = 1
"""``coverType`` value for covers that point at an uploaded image."""


# ---------------------------------------------------------------------------
# Block content
# ---------------------------------------------------------------------------

@dataclass
class Mark:
    """Inline mark over ``text[start:end]`` measured in UTF-16 code units."""

    start: int
    end: int
    type: MarkType
    param: str = ""


@dataclass
class Text:
    text: str = ""
    style: TextStyle = TextStyle.PARAGRAPH
    marks: list[Mark] = field(default_factory=list)
    checked: bool = False
    color: str = ""
    icon_emoji: str = ""
    language: str = ""


@dataclass
class Link:
    """Page link block pointing at another snapshot in the batch."""

    target_block_id: str
    style: LinkStyle = LinkStyle.PAGE


@dataclass
class Bookmark:
    url: str
    title: str = ""


@dataclass
class File:
    """Embedded binary.

    ``source`` is a local path or a URL until the file store has ingested
    it, after which ``hash`` carries the content ID.  ``temporary`` marks
    sources written to a scratch directory that must be removed after
    upload.
    """

    source: str
    type: FileType = FileType.FILE
    name: str = ""
    hash: str = ""
    temporary: bool = False


@dataclass
class Div:
    style: DivStyle = DivStyle.LINE


@dataclass
class TableOfContents:
    pass


@dataclass
class Latex:
    text: str = ""


@dataclass
class Table:
    pass


@dataclass
class TableRow:
    is_header: bool = False


@dataclass
class Layout:
    style: LayoutStyle = LayoutStyle.ROW


@dataclass
class RelationBlock:
    """Renders the value of relation ``key`` inside the object body."""

    key: str


@dataclass
class Dataview:
    """Collection view; ``target_object_id`` is set for inline databases."""

    target_object_id: str = ""
    relation_links: list[RelationLink] = field(default_factory=list)


Content = Union[
    Text, Link, Bookmark, File, Div, TableOfContents, Latex,
    Table, TableRow, Layout, RelationBlock, Dataview,
]


@dataclass
class Block:
    id: str
    content: Content
    children_ids: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Snapshots and relations
# ---------------------------------------------------------------------------

@dataclass
class RelationLink:
    key: str
    format: RelationFormat


@dataclass
class RelationOption:
    name: str
    color: str = ""


@dataclass
class Relation:
    """An edge from one object to a relation it carries a value for.

    ``key`` is the detail key the value currently sits under in the
    owning snapshot's details; the reconciler moves it to the final key.
    ``block_id`` is set when the relation is also rendered as a
    :class:`RelationBlock`.
    """

    name: str
    format: RelationFormat
    key: str
    block_id: str = ""
    options: list[RelationOption] = field(default_factory=list)


@dataclass
class Snapshot:
    """One importable object.

    Attributes
    ----------
    id:
        Identifier unique within the import; the host persists the object
        under it.
    file_name:
        Path or name hint used for diagnostics and source matching.
    kind:
        Whether the object is a page, a collection, or a sub-object
        (relation definition or relation option).
    blocks:
        Flat block list; tree structure lives in ``children_ids``.
    details:
        Attribute map keyed by :class:`DetailKey` or relation keys.
    relation_links:
        Relations shown on the object (collection columns).
    collections:
        Member object IDs for collections.
    """

    id: str
    file_name: str
    kind: ObjectKind = ObjectKind.PAGE
    blocks: list[Block] = field(default_factory=list)
    details: dict[str, Any] = field(default_factory=dict)
    object_types: list[str] = field(default_factory=list)
    relation_links: list[RelationLink] = field(default_factory=list)
    collections: list[str] = field(default_factory=list)

    @property
    def name(self) -> str:
        return str(self.details.get(DetailKey.NAME, ""))

    def block_by_id(self, block_id: str) -> Block | None:
        for block in self.blocks:
            if block.id == block_id:
                return block
        return None

    def root_blocks(self) -> list[Block]:
        """Blocks that are not the child of any other block, in order."""
        referenced = {cid for b in self.blocks for cid in b.children_ids}
        return [b for b in self.blocks if b.id not in referenced]

    def walk_blocks(self) -> Iterator[Block]:
        """Depth-first walk in document order."""
        by_id = {b.id: b for b in self.blocks}
        stack = list(reversed(self.root_blocks()))
        while stack:
            block = stack.pop()
            yield block
            for child_id in reversed(block.children_ids):
                child = by_id.get(child_id)
                if child is not None:
                    stack.append(child)


@dataclass
class Response:
    snapshots: list[Snapshot] = field(default_factory=list)
    relations: dict[str, list[Relation]] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not self.snapshots

    def merge(self, other: Response | None) -> None:
        if other is None:
            return
        self.snapshots.extend(other.snapshots)
        for object_id, relations in other.relations.items():
            self.relations.setdefault(object_id, []).extend(relations)


# ---------------------------------------------------------------------------
# Requests and results
# ---------------------------------------------------------------------------

@dataclass
class ImportRequest:
    """One import call.

    ``paths`` is used by the file based converters, ``api_key`` by the
    Notion converter.
    """

    type: ImportType
    mode: ImportMode = ImportMode.ALL_OR_NOTHING
    paths: list[str] = field(default_factory=list)
    api_key: str = ""


@dataclass
class ImportResult:
    object_ids: list[str] = field(default_factory=list)
    root_collection_id: str | None = None
    error: Exception | None = None
