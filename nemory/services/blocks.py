"""Notion block tree as a tagged union.

Each Notion block ``type`` maps to one frozen dataclass; anything the pipeline
does not know about becomes :class:`UnknownBlock`, which keeps whatever literal
text the block carried. Children fetched separately are attached to the raw
block dict under ``"children"`` before parsing.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Heading:
    level: int
    text: str
    children: tuple["Block", ...] = ()


@dataclass(frozen=True)
class Paragraph:
    text: str
    children: tuple["Block", ...] = ()


@dataclass(frozen=True)
class BulletedItem:
    text: str
    children: tuple["Block", ...] = ()


@dataclass(frozen=True)
class NumberedItem:
    text: str
    children: tuple["Block", ...] = ()


@dataclass(frozen=True)
class ToDo:
    text: str
    checked: bool = False
    children: tuple["Block", ...] = ()


@dataclass(frozen=True)
class Quote:
    text: str
    children: tuple["Block", ...] = ()


@dataclass(frozen=True)
class Code:
    text: str
    language: str = ""
    children: tuple["Block", ...] = ()


@dataclass(frozen=True)
class Toggle:
    text: str
    children: tuple["Block", ...] = ()


@dataclass(frozen=True)
class Callout:
    text: str
    icon: str = ""
    children: tuple["Block", ...] = ()


@dataclass(frozen=True)
class Table:
    rows: tuple[tuple[str, ...], ...] = ()
    has_column_header: bool = False
    children: tuple["Block", ...] = field(default=(), repr=False)


@dataclass(frozen=True)
class Divider:
    children: tuple["Block", ...] = ()


@dataclass(frozen=True)
class UnknownBlock:
    type: str
    text: str = ""
    children: tuple["Block", ...] = ()


Block = Union[
    Heading,
    Paragraph,
    BulletedItem,
    NumberedItem,
    ToDo,
    Quote,
    Code,
    Toggle,
    Callout,
    Table,
    Divider,
    UnknownBlock,
]

_HEADING_LEVELS = {"heading_1": 1, "heading_2": 2, "heading_3": 3}

# Payload keys that hold literal text on block types we do not model explicitly
_TEXT_KEYS = ("rich_text", "caption", "title", "text")


def rich_text_to_plain(runs: Any) -> str:
    """Join Notion rich-text runs into plain text."""
    if not isinstance(runs, list):
        return ""
    parts = []
    for run in runs:
        if not isinstance(run, dict):
            continue
        text = run.get("plain_text")
        if text is None:
            text = (run.get("text") or {}).get("content", "")
        parts.append(text or "")
    return "".join(parts)


def _icon_glyph(icon: Any) -> str:
    if not isinstance(icon, dict):
        return ""
    if icon.get("type") == "emoji":
        return icon.get("emoji", "")
    return ""


def _literal_text(payload: Any) -> str:
    """Best-effort text recovery for unmodelled block types."""
    if not isinstance(payload, dict):
        return ""
    for key in _TEXT_KEYS:
        value = payload.get(key)
        if isinstance(value, list):
            text = rich_text_to_plain(value)
            if text:
                return text
        elif isinstance(value, str) and value:
            return value
    return ""


def parse_blocks(raw_blocks: Any) -> tuple[Block, ...]:
    """Parse a list of raw children, skipping (and logging) malformed ones."""
    if not isinstance(raw_blocks, list):
        return ()
    blocks = []
    for raw in raw_blocks:
        try:
            blocks.append(parse_block(raw))
        except (TypeError, KeyError, AttributeError, ValueError) as e:
            logger.warning("Skipping malformed child block: %s", e)
    return tuple(blocks)


def parse_block(raw: dict[str, Any]) -> Block:
    """Convert one raw Notion block dict into its typed variant.

    Raises ``TypeError``/``KeyError`` on structurally broken input; callers that
    must not fail (the extractor) catch and log.
    """
    if not isinstance(raw, dict):
        raise TypeError(f"block must be a dict, got {type(raw).__name__}")

    block_type = raw["type"]
    payload = raw.get(block_type) or {}
    children = parse_blocks(raw.get("children"))
    text = rich_text_to_plain(payload.get("rich_text"))

    if block_type in _HEADING_LEVELS:
        return Heading(level=_HEADING_LEVELS[block_type], text=text, children=children)
    if block_type == "paragraph":
        return Paragraph(text=text, children=children)
    if block_type == "bulleted_list_item":
        return BulletedItem(text=text, children=children)
    if block_type == "numbered_list_item":
        return NumberedItem(text=text, children=children)
    if block_type == "to_do":
        return ToDo(text=text, checked=bool(payload.get("checked")), children=children)
    if block_type == "quote":
        return Quote(text=text, children=children)
    if block_type == "code":
        return Code(text=text, language=payload.get("language") or "", children=children)
    if block_type == "toggle":
        return Toggle(text=text, children=children)
    if block_type == "callout":
        return Callout(text=text, icon=_icon_glyph(payload.get("icon")), children=children)
    if block_type == "table":
        rows = []
        for child in raw.get("children") or []:
            if isinstance(child, dict) and child.get("type") == "table_row":
                cells = (child.get("table_row") or {}).get("cells") or []
                rows.append(tuple(rich_text_to_plain(cell) for cell in cells))
        return Table(rows=tuple(rows), has_column_header=bool(payload.get("has_column_header")))
    if block_type == "divider":
        return Divider()

    return UnknownBlock(type=str(block_type), text=_literal_text(payload), children=children)
