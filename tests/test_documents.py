"""
Document metadata encoding and listing format.
"""

from datetime import datetime, timezone
from statmem.core.documents import Document, format_document_listing


def test_metadata_round_trip():
    created = datetime(2024, 5, 1, 12, 30, 0, tzinfo=timezone.utc)
    doc = Document(id="d1", content="text", tags=["a", "b"], properties={"k": "v"},
                   favorite=True, created_at=created)

    metadata = doc.to_metadata()
    assert metadata == {
        "tags": "a,b",
        "favorite": "true",
        "created_at": "2024-05-01T12:30:00+00:00",
        "prop_k": "v",
    }
    assert Document.from_metadata("d1", "text", metadata) == doc


def test_from_metadata_defaults():
    doc = Document.from_metadata("d2", "body", {})
    assert doc.tags == []
    assert doc.properties == {}
    assert doc.favorite is False
    assert isinstance(doc.created_at, datetime)


def test_from_metadata_tolerates_bad_timestamp():
    doc = Document.from_metadata("d3", "body", {"created_at": "yesterday", "favorite": "false"})
    assert isinstance(doc.created_at, datetime)
    assert doc.favorite is False


def test_listing_format():
    created = datetime(2024, 5, 1, 12, 30, 0, tzinfo=timezone.utc)
    docs = [
        Document(id="d1", content="first", tags=["x", "y"], favorite=True, created_at=created),
        Document(id="d2", content="second", created_at=created),
    ]

    text = format_document_listing(docs, "Found 2 memories:")

    assert text.startswith("Found 2 memories:\n\n1. [d1] ⭐\nContent: first\nTags: x, y\nCreated: 2024-05-01 12:30:00\n")
    assert "2. [d2]\nContent: second\nTags: \n" in text
