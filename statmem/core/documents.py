"""
Document model and its flat string-metadata encoding in the vector store.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

PROPERTY_PREFIX = "prop_"


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


@dataclass
class Document:
    """A stored memory document. Only `content` contributes to its embedding."""
    id: str
    content: str
    tags: List[str] = field(default_factory=list)
    properties: Dict[str, str] = field(default_factory=dict)
    favorite: bool = False
    created_at: datetime = field(default_factory=utc_now)

    def to_metadata(self) -> Dict[str, str]:
        """Flatten tags, favorite flag, timestamp and properties into string metadata."""
        metadata = {
            "tags": ",".join(self.tags),
            "favorite": "true" if self.favorite else "false",
            "created_at": self.created_at.isoformat(),
        }
        for key, value in self.properties.items():
            metadata[PROPERTY_PREFIX + key] = value
        return metadata

    @classmethod
    def from_metadata(cls, doc_id: str, content: str, metadata: Dict[str, str]) -> 'Document':
        """Rebuild a document from store metadata. Missing fields get defaults."""
        tags_str = metadata.get("tags", "")
        tags = tags_str.split(",") if tags_str else []

        created_at = utc_now()
        if metadata.get("created_at"):
            try:
                created_at = datetime.fromisoformat(metadata["created_at"])
            except ValueError:
                pass  # keep default timestamp for malformed values

        properties = {
            key[len(PROPERTY_PREFIX):]: value
            for key, value in metadata.items()
            if key.startswith(PROPERTY_PREFIX)
        }

        return cls(
            id=doc_id,
            content=content,
            tags=tags,
            properties=properties,
            favorite=metadata.get("favorite") == "true",
            created_at=created_at,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["created_at"] = self.created_at.isoformat()
        return data


@dataclass
class RankedResult:
    """A search hit: the document, the store's raw similarity and the boosted score."""
    document: Document
    score: float
    boosted_score: float

    @property
    def id(self) -> str:
        return self.document.id


def format_document_listing(documents: List[Document], header: Optional[str] = None) -> str:
    """Render documents as the numbered plain-text listing used by the tool server."""
    entries = []
    for i, doc in enumerate(documents, start=1):
        favorite = " ⭐" if doc.favorite else ""
        entries.append(
            f"{i}. [{doc.id}]{favorite}\n"
            f"Content: {doc.content}\n"
            f"Tags: {', '.join(doc.tags)}\n"
            f"Created: {doc.created_at.strftime('%Y-%m-%d %H:%M:%S')}\n"
        )
    body = "\n".join(entries)
    return f"{header}\n\n{body}" if header else body
