"""Text normalization for embedding.

Collapses a record's title, excerpt and body into a single plain-text string.
Block bodies contribute only their textual blocks; media and layout blocks are
dropped. Truncation to ``max_chars`` is applied last.
"""

import re
from typing import Any, Iterable, List, Optional

from .models import ContentBlock, ContentRecord

DEFAULT_MAX_CHARS = 8000

TEXT_BLOCK_TYPES = frozenset({
    "paragraph",
    "text",
    "heading",
    "quote",
    "list",
    "callout",
})

_TAG_RE = re.compile(r"<[^>]+>")
_WHITESPACE_RE = re.compile(r"\s+")


def _clean(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return _WHITESPACE_RE.sub(" ", _TAG_RE.sub(" ", value)).strip()


def _block_text(block: ContentBlock) -> str:
    # List items may live in metadata when the editor stored them structured.
    items = block.metadata.get("items") if block.type == "list" else None
    if isinstance(items, list) and items:
        return " ".join(_clean(item) for item in items if _clean(item))
    return _clean(block.content)


def extract_block_text(blocks: Iterable[ContentBlock]) -> str:
    """Join the text of textual blocks with single spaces."""
    parts = []
    for block in blocks:
        if block.type not in TEXT_BLOCK_TYPES:
            continue
        text = _block_text(block)
        if text:
            parts.append(text)
    return " ".join(parts)


def body_text(body: Any) -> str:
    """Plain text of a flat or block-structured body; empty when missing."""
    if body is None:
        return ""
    if isinstance(body, str):
        return _clean(body)
    # Scalars and mappings (e.g. a stray jsonb value) carry no block text
    if not isinstance(body, (list, tuple)):
        return ""
    blocks: List[ContentBlock] = []
    for block in body:
        if isinstance(block, ContentBlock):
            blocks.append(block)
        elif isinstance(block, dict):
            blocks.append(ContentBlock.from_dict(block))
        elif isinstance(block, str):
            blocks.append(ContentBlock(type="paragraph", content=block))
    return extract_block_text(blocks)


def normalize(record: ContentRecord, max_chars: Optional[int] = DEFAULT_MAX_CHARS) -> str:
    """Collapse a record into bounded plain text: title, excerpt, then body.

    Missing fields contribute an empty segment. ``max_chars=None`` disables
    truncation.
    """
    segments = [
        _clean(record.title),
        _clean(record.excerpt),
        body_text(record.body),
    ]
    text = " ".join(segment for segment in segments if segment)
    if max_chars is not None and len(text) > max_chars:
        text = text[:max_chars]
    return text
