from typing import List
from pydantic import BaseModel, Field


# ------------------------------------------------------------------------------
# Schemas
# ------------------------------------------------------------------------------

class DocSection(BaseModel):
    title: str
    url: str

class DocStructureResponse(BaseModel):
    sections: List[DocSection] = Field(default_factory=list)

class SearchResult(BaseModel):
    title: str
    url: str
    content: str = Field("", description="Snippet around the first match")

class SearchDocsResponse(BaseModel):
    results: List[SearchResult] = Field(default_factory=list)

class GetDocumentResponse(BaseModel):
    title: str
    content: str
    url: str

