"""
Request and response models for the suggestion API.
JSON field names are camelCase on the wire; snake_case is accepted on input.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Dict, Any
from datetime import datetime


class SuggestionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    node_text: Optional[str] = Field(default=None, alias="nodeText")
    extra_context: Optional[str] = Field(default=None, alias="extraContext")
    style_guide_text: Optional[str] = Field(default=None, alias="styleGuideText")


class SuggestionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    reuse_suggestions: List[str] = Field(alias="reuseSuggestions")
    new_suggestions: List[str] = Field(alias="newSuggestions")


class HealthResponse(BaseModel):
    status: str
    version: str
    corpus_loaded: bool
    corpus_size: Optional[int] = None
    retriever: Optional[str] = None


class ErrorResponse(BaseModel):
    error: str
    message: Optional[str] = None
    timestamp: datetime = None
    details: Optional[Dict[str, Any]] = None

    def __init__(self, **data):
        super().__init__(timestamp=datetime.now(), **data)
