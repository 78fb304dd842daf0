"""Tests for content models and text normalization."""

import pytest

from discovery.content.models import (
    ALL_COLLECTIONS,
    Collection,
    ContentBlock,
    ContentRecord,
    SearchResult,
)
from discovery.content.normalizer import body_text, extract_block_text, normalize


def _record(**kwargs):
    defaults = {"id": "1", "title": "Title", "collection": Collection.ARTICLE}
    defaults.update(kwargs)
    return ContentRecord(**defaults)


def test_normalize_orders_title_excerpt_body():
    """Test title, excerpt and body are joined in order."""
    record = _record(title="Title", excerpt="Excerpt", body="Body text")
    assert normalize(record) == "Title Excerpt Body text"


def test_normalize_missing_fields_contribute_nothing():
    """Test missing excerpt and body are not an error."""
    assert normalize(_record(title="Only title")) == "Only title"
    assert normalize(_record(title="", excerpt=None, body=None)) == ""


def test_normalize_keeps_only_textual_blocks():
    """Test media and layout blocks are discarded."""
    body = [
        ContentBlock(type="heading", content="Intro"),
        ContentBlock(type="image", content="hero.png"),
        ContentBlock(type="paragraph", content="First paragraph."),
        ContentBlock(type="divider"),
        ContentBlock(type="quote", content="A quote"),
        ContentBlock(type="code", content="x = 1"),
        ContentBlock(type="callout", content="Heads up"),
    ]
    text = normalize(_record(title="T", body=body))
    assert text == "T Intro First paragraph. A quote Heads up"
    assert "hero.png" not in text
    assert "x = 1" not in text


def test_list_block_items_from_metadata():
    """Test list blocks read items from metadata when present."""
    blocks = [ContentBlock(type="list", content="", metadata={"items": ["one", "<em>two</em>"]})]
    assert extract_block_text(blocks) == "one two"


def test_html_and_whitespace_are_cleaned():
    """Test inline markup is stripped and whitespace collapsed."""
    body = [{"type": "paragraph", "content": "<p>Hello\n\n  <b>world</b></p>"}]
    assert body_text(body) == "Hello world"


def test_truncation_applied_last():
    """Test the length bound truncates the joined text."""
    record = _record(title="abc", excerpt="def", body="x" * 50)
    text = normalize(record, max_chars=10)
    assert text == "abc def xx"
    assert len(normalize(record, max_chars=None)) == len("abc def ") + 50


def test_default_truncation_bound():
    """Test the default bound is 8000 characters."""
    record = _record(title="t", body="y" * 9000)
    assert len(normalize(record)) == 8000


def test_note_lists_become_paragraphs():
    """Test bare-string bodies (design notes) are treated as text."""
    record = ContentRecord.from_row(
        Collection.PROJECT,
        {"id": 7, "title": "Set", "slug": "set", "excerpt": None,
         "body": ["note one", "note two", 42], "published": True},
    )
    assert record.id == "7"
    assert [b.type for b in record.body] == ["paragraph", "paragraph"]
    assert normalize(record) == "Set note one note two"


def test_collection_locators_and_keys():
    """Test collection metadata used in responses."""
    assert [c.response_key for c in ALL_COLLECTIONS] == ["projects", "tutorials", "articles", "news"]
    assert Collection.PROJECT.locator("mdq") == "/project/mdq"
    assert Collection.ARTICLE.locator("x") == "/articles/x"
    assert Collection.from_response_key("news") is Collection.NEWS
    with pytest.raises(ValueError):
        Collection.from_response_key("posts")


def test_search_result_serialization():
    """Test search results serialize the collection as its value."""
    result = SearchResult(id="1", title="T", locator="/news/t", collection=Collection.NEWS)
    assert result.to_dict() == {
        "id": "1",
        "title": "T",
        "locator": "/news/t",
        "collection": "news",
        "score": None,
    }


@pytest.mark.parametrize("body", [42, 3.5, True, {"type": "paragraph", "content": "x"}])
def test_unexpected_body_shapes_contribute_nothing(body):
    """Test scalar or mapping bodies are treated as missing."""
    assert body_text(body) == ""
    assert normalize(_record(title="T", body=body)) == "T"


def test_block_metadata_must_be_mapping():
    """Test non-mapping block metadata from storage is dropped."""
    block = ContentBlock.from_dict({"type": "list", "content": "a b", "metadata": ["x"]})
    assert block.metadata == {}
    assert extract_block_text([block]) == "a b"
