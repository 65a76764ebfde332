"""Telegram message formatting for summaries. Pure functions, no I/O."""

import re
from datetime import datetime

from nemory.constants import TELEGRAM_MAX_MESSAGE_LENGTH
from nemory.utils import ensure_utc, utf16_len

HEADER = "<b>📝 Nemory Summary</b>"
FOOTER = "<i>Delivered by Nemory · your Notion workspace, summarized</i>"
TRUNCATION_MARKER = "…\n<i>(summary truncated)</i>"

# An ampersand that does not already start an HTML entity
_BARE_AMPERSAND_RE = re.compile(r"&(?!(?:amp|lt|gt|quot|#\d+|#x[0-9a-fA-F]+);)")
_BOLD_RE = re.compile(r"\*\*(.+?)\*\*")
_HEADING_RE = re.compile(r"^#{1,6}\s+(.*)$")
_PARTIAL_ENTITY_RE = re.compile(r"&[#a-zA-Z0-9]*$")


def escape_html(text: str) -> str:
    """Escape text for Telegram's HTML parse mode.

    Idempotent: already-escaped entities are left alone, so applying it twice
    gives the same result as applying it once.
    """
    text = _BARE_AMPERSAND_RE.sub("&amp;", text)
    return text.replace("<", "&lt;").replace(">", "&gt;")


def _render_line(line: str) -> str:
    heading = _HEADING_RE.match(line.strip())
    if heading:
        return f"<b>{escape_html(heading.group(1))}</b>"
    return _BOLD_RE.sub(r"<b>\1</b>", escape_html(line))


def _safe_cut(text: str, limit: int) -> str:
    """Cut escaped text to at most *limit* UTF-16 units without splitting an entity or a surrogate pair."""
    if utf16_len(text) <= limit:
        return text
    # A half surrogate pair left at the end is dropped by errors="ignore"
    cut = text.encode("utf-16-le")[: limit * 2].decode("utf-16-le", errors="ignore")
    return _PARTIAL_ENTITY_RE.sub("", cut)


def format_generated_at(generated_at: datetime) -> str:
    stamp = ensure_utc(generated_at)
    return f"{stamp:%B} {stamp.day}, {stamp.year} at {stamp:%H:%M} UTC"


def format_summary_message(
    summary: str,
    generated_at: datetime,
    max_length: int = TELEGRAM_MAX_MESSAGE_LENGTH,
) -> str:
    """Wrap a summary in the fixed header/footer, escaped and sized for Telegram.

    *max_length* is in UTF-16 code units, as Telegram measures it.
    """
    head = f"{HEADER}\n<i>Generated: {format_generated_at(generated_at)}</i>\n\n"
    tail = f"\n\n{FOOTER}"

    lines = [_render_line(line) for line in summary.strip().splitlines()]
    body = "\n".join(lines)
    budget = max_length - utf16_len(head) - utf16_len(tail)
    if utf16_len(body) <= budget:
        return head + body + tail

    # Keep whole lines while they fit, then a plain-escaped cut of the next one
    budget -= utf16_len(TRUNCATION_MARKER)
    kept: list[str] = []
    used = 0
    raw_lines = summary.strip().splitlines()
    for raw, rendered in zip(raw_lines, lines):
        cost = utf16_len(rendered) + (1 if kept else 0)
        if used + cost <= budget:
            kept.append(rendered)
            used += cost
            continue
        room = budget - used - (1 if kept else 0)
        if room > 0:
            partial = _safe_cut(escape_html(raw), room)
            if partial:
                kept.append(partial)
        break

    return head + "\n".join(kept) + TRUNCATION_MARKER + tail
