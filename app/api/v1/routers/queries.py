# app/api/v1/routers/queries.py
from fastapi import APIRouter, Depends
import time
import logging

from app.api.deps import rag_service
from app.api.v1.schemas.reco import (
    QueryRequest, QueryResponse, CompareRequest, FaqRequest, SuggestionsRequest,
)
from app.domain.services.rag_svc import RagService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/queries", tags=["queries"])


@router.post("/ask", response_model=QueryResponse)
async def ask(request: QueryRequest, rag: RagService = Depends(rag_service)):
    """Free-form product question answered from retrieved catalog context."""
    logger.info(f"Request: ask query={request.query!r}")
    start_time = time.perf_counter()
    res = await rag.answer_query(request.query)
    logger.info(f"Response: ask docs={res.context_documents_used} elapsed_time={time.perf_counter() - start_time:.4f}s")
    return QueryResponse(query=request.query, **res.model_dump())


@router.post("/recommend-with-explanation", response_model=QueryResponse)
async def recommend_with_explanation(request: QueryRequest, rag: RagService = Depends(rag_service)):
    logger.info(f"Request: recommend-with-explanation query={request.query!r}")
    res = await rag.recommend_with_explanation(request.query, request.user_preferences)
    return QueryResponse(query=request.query, **res.model_dump())


@router.post("/compare-products", response_model=QueryResponse)
async def compare_products(request: CompareRequest, rag: RagService = Depends(rag_service)):
    logger.info(f"Request: compare-products ids={request.product_ids}")
    res = await rag.compare_products(request.product_ids)
    return QueryResponse(query="Compare products: " + ", ".join(request.product_ids), **res.model_dump())


@router.post("/product-faq/{product_id}", response_model=QueryResponse)
async def product_faq(product_id: str, request: FaqRequest, rag: RagService = Depends(rag_service)):
    logger.info(f"Request: product-faq product_id={product_id}")
    res = await rag.answer_product_faq(product_id, request.question)
    return QueryResponse(query=request.question, **res.model_dump())


@router.post("/personalized-suggestions", response_model=QueryResponse)
async def personalized_suggestions(request: SuggestionsRequest, rag: RagService = Depends(rag_service)):
    logger.info(f"Request: personalized-suggestions occasion={request.occasion!r}")
    res = await rag.personalized_suggestions(request.user_profile, request.occasion)
    return QueryResponse(query=f"Suggestions for {request.occasion}", **res.model_dump())
