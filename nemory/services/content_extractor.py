"""Flatten Notion block trees into plain text for summarization."""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from nemory.constants import CONTENT_TRUNCATION_MARKER, MAX_CONTENT_CHARS
from nemory.services.blocks import (
    Block,
    BulletedItem,
    Callout,
    Code,
    Divider,
    Heading,
    NumberedItem,
    Paragraph,
    Quote,
    Table,
    ToDo,
    Toggle,
    UnknownBlock,
    parse_block,
)
from nemory.services.notion_provider import WorkspaceDocument

logger = logging.getLogger(__name__)

INDENT = "  "
DIVIDER_MARKER = "---"


@dataclass
class ExtractedContent:
    """Concatenated document text plus how many documents contributed to it."""

    text: str
    documents_processed: int
    truncated: bool = False


def render_block(block: Block, depth: int = 0, number: int = 1) -> list[str]:
    """Render one block (and its children) into output lines."""
    pad = INDENT * depth
    lines: list[str]

    match block:
        case Heading(level=level, text=text):
            lines = [f"{pad}{'#' * level} {text}"] if text else []
        case Paragraph(text=text):
            lines = [f"{pad}{text}"] if text else []
        case BulletedItem(text=text):
            lines = [f"{pad}• {text}"]
        case NumberedItem(text=text):
            lines = [f"{pad}{number}. {text}"]
        case ToDo(text=text, checked=checked):
            lines = [f"{pad}{'✅' if checked else '☐'} {text}"]
        case Quote(text=text):
            lines = [f"{pad}> {line}" for line in text.splitlines()] or [f"{pad}>"]
        case Code(text=text, language=language):
            lines = [f"{pad}```{language}", *(f"{pad}{line}" for line in text.splitlines()), f"{pad}```"]
        case Toggle(text=text):
            lines = [f"{pad}▸ {text}"]
        case Callout(text=text, icon=icon):
            lines = [f"{pad}{icon or '💡'} {text}"]
        case Table(rows=rows):
            lines = [f"{pad}| {' | '.join(row)} |" for row in rows]
        case Divider():
            lines = [f"{pad}{DIVIDER_MARKER}"]
        case UnknownBlock(type=block_type, text=text):
            lines = [f"{pad}[{block_type}] {text}" if text else f"{pad}[{block_type}]"]
        case _:
            raise TypeError(f"unsupported block variant {type(block).__name__}")

    if block.children:
        lines.extend(render_blocks(block.children, depth + 1))
    return lines


def render_blocks(blocks: Iterable[Block], depth: int = 0) -> list[str]:
    """Render sibling blocks, numbering consecutive numbered-list items."""
    lines: list[str] = []
    number = 0
    for block in blocks:
        number = number + 1 if isinstance(block, NumberedItem) else 0
        try:
            lines.extend(render_block(block, depth, number))
        except Exception as e:
            logger.warning("Failed to render %s block: %s", type(block).__name__, e)
    return lines


def extract_blocks(raw_blocks: Sequence[Any]) -> str:
    """Parse and render raw block dicts; a node that fails is logged and skipped."""
    lines: list[str] = []
    number = 0
    for raw in raw_blocks or []:
        try:
            block = parse_block(raw)
            number = number + 1 if isinstance(block, NumberedItem) else 0
            lines.extend(render_block(block, 0, number))
        except Exception as e:
            block_id = raw.get("id") if isinstance(raw, dict) else None
            logger.warning("Skipping block %s during extraction: %s", block_id, e)
    return "\n".join(lines)


def extract_document(document: WorkspaceDocument) -> str:
    """Flatten one document into a title/last-edited-prefixed text blob."""
    edited = document.last_edited_time.strftime("%Y-%m-%d %H:%M UTC") if document.last_edited_time else "unknown"
    header = f"--- {document.title or 'Untitled'} (last edited {edited}) ---"
    body = extract_blocks(document.blocks)
    return f"{header}\n{body}" if body else header


def extract_documents(
    documents: Sequence[WorkspaceDocument],
    max_chars: int = MAX_CONTENT_CHARS,
) -> ExtractedContent:
    """Concatenate extracted documents, truncating with an explicit marker past *max_chars*."""
    parts: list[str] = []
    processed = 0
    for document in documents:
        try:
            parts.append(extract_document(document))
            processed += 1
        except Exception as e:
            logger.warning("Failed to extract document %s: %s", getattr(document, "id", "?"), e)

    text = "\n\n".join(parts)
    if len(text) <= max_chars:
        return ExtractedContent(text=text, documents_processed=processed)

    logger.info("Extracted content truncated from %d to %d chars", len(text), max_chars)
    return ExtractedContent(
        text=text[:max_chars] + CONTENT_TRUNCATION_MARKER,
        documents_processed=processed,
        truncated=True,
    )
