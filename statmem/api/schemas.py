"""
Request and response models for the dashboard API.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict
from datetime import datetime


class DocumentRequest(BaseModel):
    content: str
    tags: List[str] = Field(default_factory=list)
    properties: Dict[str, str] = Field(default_factory=dict)
    favorite: bool = False

    @field_validator('tags')
    @classmethod
    def tags_must_not_contain_commas(cls, v):
        # tags are comma-joined in vector metadata
        for tag in v:
            if "," in tag:
                raise ValueError(f'tag cannot contain a comma: {tag!r}')
        return v


class FavoriteRequest(BaseModel):
    favorite: bool


class DocumentResponse(BaseModel):
    id: str
    content: str
    tags: List[str]
    properties: Dict[str, str]
    favorite: bool
    created_at: datetime


class DocumentStatusResponse(BaseModel):
    id: str
    status: str
    favorite: Optional[bool] = None


class SearchHit(DocumentResponse):
    score: float
    boosted_score: float


class StatsResponse(BaseModel):
    total_documents: int
    add_document_count: int
    search_count: int
    delete_document_count: int
    get_document_count: int
    get_all_documents: int


class HealthResponse(BaseModel):
    status: str
    version: str
    db_health: bool
    document_count: int
