# app/domain/services/rag_svc.py

from __future__ import annotations
from typing import List, Optional, Union
import logging
from time import monotonic as _now

from openai import AsyncOpenAI, OpenAIError
from pydantic import BaseModel

from app.domain.errors import CollaboratorUnavailableError, ValidationFailureError
from app.domain.models.product import Product, SearchHit
from app.domain.services import prompts
from app.domain.services.catalog_svc import CatalogService
from app.domain.services.query_builders import product_to_embedding_text
from app.domain.services.vector_index_svc import EmbeddingIndexClient, product_metadata

logger = logging.getLogger(__name__)

Messages = List[dict]

PREVIEW_CHARS = 200
FAQ_RELATED_DOCS = 2

# =============================================================================
#                               TEXT GENERATOR
# =============================================================================

class OpenAITextGenerator:
    """Prompt (or chat messages) in, free text out. Output is opaque."""

    def __init__(self, client: AsyncOpenAI, model: str, *, temperature: float = 0.3, timeout_s: int = 30):
        self.client = client
        self.model = model
        self.temperature = temperature
        self.timeout_s = timeout_s

    async def generate(self, prompt: Union[str, Messages]) -> str:
        messages = [{"role": "user", "content": prompt}] if isinstance(prompt, str) else prompt
        t0 = _now()
        try:
            resp = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.temperature,
                timeout=self.timeout_s,
            )
        except OpenAIError as e:
            logger.error(f"LLM call failed model={self.model}: {e}")
            raise CollaboratorUnavailableError("text generator", str(e)) from e
        dt = _now() - t0
        u = getattr(resp, "usage", None)
        logger.info(
            f"LLM call model={getattr(resp, 'model', self.model)} duration={dt:.3f}s "
            f"tokens(prompt={getattr(u, 'prompt_tokens', None)}, completion={getattr(u, 'completion_tokens', None)})"
        )
        return resp.choices[0].message.content or ""

# =============================================================================
#                               CONTEXT HELPERS
# =============================================================================

class RagAnswer(BaseModel):
    answer: str
    context_documents_used: int = 0


def preview(text: str, limit: int = PREVIEW_CHARS) -> str:
    """Truncate text for logs and response previews."""
    return text if len(text) <= limit else text[:limit] + "…[truncated]"


def _product_document(product: Product) -> SearchHit:
    return SearchHit(
        product_id=product.product_id,
        score=1.0,
        content=product_to_embedding_text(product),
        metadata=product_metadata(product),
    )


def _fmt_number(v) -> str:
    try:
        return f"{float(v):.2f}"
    except (TypeError, ValueError):
        return str(v)


def build_context(documents: List[SearchHit]) -> str:
    """
    One block per document:
      Product {i}:
      {text}
      Additional Info: Price: ${price}, Rating: {rating} stars   (only with metadata)
    """
    blocks = []
    for i, doc in enumerate(documents, start=1):
        block = f"Product {i}:\n{doc.content}\n"
        if doc.metadata:
            block += (
                f"Additional Info: Price: ${_fmt_number(doc.metadata.get('price'))}, "
                f"Rating: {_fmt_number(doc.metadata.get('rating'))} stars\n"
            )
        blocks.append(block + "\n")
    return "".join(blocks)

# =============================================================================
#                               PUBLIC API
# =============================================================================

class RagService:
    """
    Retrieval-augmented answers over the product index.
    When retrieval yields no documents, a fixed message is returned and the
    text generator is never called.
    """

    def __init__(
        self,
        index: EmbeddingIndexClient,
        catalog: CatalogService,
        generator,
        *,
        context_window: int = 5,
        similarity_threshold: float = 0.7,
    ):
        self.index = index
        self.catalog = catalog
        self.generator = generator
        self.context_window = context_window
        self.similarity_threshold = similarity_threshold

    async def _retrieve(self, query: str, top_k: int) -> List[SearchHit]:
        docs = await self.index.search(query, top_k, self.similarity_threshold)
        logger.info(f"Retrieved {len(docs)} context documents")
        return docs

    async def _generate(self, task: str, prompt: Union[str, Messages], docs: List[SearchHit]) -> RagAnswer:
        text = await self.generator.generate(prompt)
        logger.info(f"Generated {task} answer docs={len(docs)} preview={preview(text)!r}")
        return RagAnswer(answer=text, context_documents_used=len(docs))

    async def answer_query(self, query: str) -> RagAnswer:
        logger.debug(f"Answering query with RAG: {query}")
        docs = await self._retrieve(query, self.context_window)
        if not docs:
            logger.info("No relevant context found for query")
            return RagAnswer(answer=prompts.NO_RESULTS[prompts.TASK_ANSWER])

        messages = [
            {"role": "system", "content": prompts.ANSWER_SYSTEM},
            {"role": "user", "content": prompts.answer_user(build_context(docs), query)},
        ]
        return await self._generate(prompts.TASK_ANSWER, messages, docs)

    async def recommend_with_explanation(self, query: str, preferences: Optional[str] = None) -> RagAnswer:
        logger.debug(f"Getting recommendation with explanation for: {query}")
        docs = await self._retrieve(f"{query} {preferences or ''}".strip(), self.context_window)
        if not docs:
            return RagAnswer(answer=prompts.NO_RESULTS[prompts.TASK_RECOMMEND])

        prompt = prompts.recommend_prompt(query, preferences or "Not specified", build_context(docs))
        return await self._generate(prompts.TASK_RECOMMEND, prompt, docs)

    async def compare_products(self, product_ids: List[str]) -> RagAnswer:
        logger.debug(f"Comparing products: {product_ids}")
        if not product_ids:
            return RagAnswer(answer=prompts.NO_PRODUCTS_TO_COMPARE)

        # by id, so soft-deleted products can still be compared
        docs = [_product_document(p) for p in await self.catalog.get_many(product_ids)]
        if not docs:
            return RagAnswer(answer=prompts.NO_RESULTS[prompts.TASK_COMPARE])

        return await self._generate(prompts.TASK_COMPARE, prompts.compare_prompt(build_context(docs)), docs)

    async def answer_product_faq(self, product_id: str, question: str) -> RagAnswer:
        if not question or not question.strip():
            raise ValidationFailureError("question must not be blank")
        logger.debug(f"Answering FAQ for product {product_id}: {question}")

        product = await self.catalog.get_by_id(product_id)
        related = await self._retrieve(f"{product.name} {question}", FAQ_RELATED_DOCS)
        docs = [_product_document(product)] + [d for d in related if d.product_id != product_id]

        prompt = prompts.faq_prompt(build_context(docs), question)
        return await self._generate(prompts.TASK_FAQ, prompt, docs)

    async def personalized_suggestions(self, profile: Optional[str], occasion: Optional[str]) -> RagAnswer:
        profile = profile or "general customer"
        occasion = occasion or "general shopping"
        logger.debug(f"Getting personalized suggestions for occasion: {occasion}")

        docs = await self._retrieve(f"{profile} {occasion} shopping suggestions", self.context_window * 2)
        if not docs:
            return RagAnswer(answer=prompts.NO_RESULTS[prompts.TASK_SUGGESTIONS])

        prompt = prompts.suggestions_prompt(profile, occasion, build_context(docs))
        return await self._generate(prompts.TASK_SUGGESTIONS, prompt, docs)

    async def personalized_description(self, product_id: str, preferences: Optional[str] = None) -> RagAnswer:
        logger.debug(f"Generating personalized description for product: {product_id}")
        product = await self.catalog.get_by_id(product_id)
        prompt = prompts.description_prompt(
            name=product.name,
            category=product.category.display_name,
            description=product.description,
            features=", ".join(product.features),
            price=product.price,
            rating=product.rating,
            preferences=preferences or "general quality and value",
        )
        return await self._generate(prompts.TASK_DESCRIPTION, prompt, [_product_document(product)])
