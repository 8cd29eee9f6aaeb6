# app/api/v1/schemas/reco.py
from pydantic import BaseModel, Field
from typing import List, Optional


class RecommendationRequest(BaseModel):
    user_preferences: Optional[str] = None
    viewed_product_ids: Optional[List[str]] = None
    limit: int = Field(10, ge=1)


class QueryRequest(BaseModel):
    query: str = Field(min_length=3, max_length=500)
    user_preferences: Optional[str] = None
    context: Optional[str] = None


class QueryResponse(BaseModel):
    query: str
    answer: str
    context_documents_used: int = 0


class CompareRequest(BaseModel):
    product_ids: List[str] = Field(default_factory=list)


class FaqRequest(BaseModel):
    question: str = Field(min_length=1, max_length=500)


class SuggestionsRequest(BaseModel):
    user_profile: str = "general customer"
    occasion: str = "general shopping"


class DescriptionRequest(BaseModel):
    user_preferences: Optional[str] = None


class ReindexResult(BaseModel):
    seen: int
    synced: int
    removed: int = 0
    errors: List[str] = Field(default_factory=list)
    processing_time_ms: float
