"""
Record and result types exchanged with vector stores.
"""

from typing import Dict, Optional
import numpy as np
from dataclasses import dataclass, field


@dataclass
class VectorRecord:
    """Represents a vector record with its source text and metadata."""

    id: str
    """Unique identifier for the vector record"""

    vector: Optional[np.ndarray]
    """The vector representation of the content"""

    metadata: Dict[str, str] = field(default_factory=dict)
    """String metadata stored alongside the vector"""

    content: str = ""
    """Raw text the vector was computed from"""


@dataclass
class QueryResult:
    """Represents a search result from vector store."""

    id: str
    """Identifier for the matching record"""

    score: float
    """Cosine similarity of the match"""

    metadata: Dict[str, str] = field(default_factory=dict)
    """Metadata associated with the matched record"""

    content: str = ""
    """Raw text of the matched record"""
