"""Data models shared by the index, navigation and fetcher layers."""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SearchDoc(BaseModel):
    """One record of the bulk search feed."""

    model_config = ConfigDict(frozen=True)

    location: str
    title: str = ""
    text: str = ""


class DocItem(BaseModel):
    """A navigation entry or a search result."""

    model_config = ConfigDict(frozen=True)

    title: str
    url: str
    content: Optional[str] = Field(None, description="Snippet or page text, filled lazily")


class SearchHit(BaseModel):
    model_config = ConfigDict(frozen=True)

    ref: str
    score: float


class DocumentResponse(BaseModel):
    title: str
    content: str
    url: str
