from __future__ import annotations

import asyncio
from types import SimpleNamespace

import pytest
from openai import OpenAIError

from app.domain.errors import CollaboratorUnavailableError, NotFoundError, ValidationFailureError
from app.domain.models.product import SearchHit
from app.domain.services import prompts
from app.domain.services.rag_svc import OpenAITextGenerator, build_context, preview
from fakes import hit, make_product


def test_no_context_returns_fixed_message_without_generation(rag, store, generator):
    res = asyncio.run(rag.answer_query("unicorn saddle"))

    assert res.answer == (
        "I couldn't find any products matching your query. Please try rephrasing or being more specific."
    )
    assert res.context_documents_used == 0
    assert generator.prompts == []
    assert store.search_calls == [("unicorn saddle", 5, 0.7)]


def test_answer_query_sends_system_and_user_messages(rag, store, generator):
    store.hits = [hit("a", 0.9, price=10.0), hit("b", 0.8)]

    res = asyncio.run(rag.answer_query("cheap cables"))

    assert res.answer == "generated answer"
    assert res.context_documents_used == 2
    messages = generator.prompts[0]
    assert [m["role"] for m in messages] == ["system", "user"]
    assert "Product 1:\nProduct: a." in messages[1]["content"]
    assert "cheap cables" in messages[1]["content"]


def test_recommend_with_explanation_empty(rag, generator):
    res = asyncio.run(rag.recommend_with_explanation("gift", "for a runner"))
    assert res.answer == prompts.NO_RESULTS[prompts.TASK_RECOMMEND]
    assert generator.prompts == []


def test_compare_products(rag, repo, generator):
    assert asyncio.run(rag.compare_products([])).answer == prompts.NO_PRODUCTS_TO_COMPARE
    assert asyncio.run(rag.compare_products(["x"])).answer == prompts.NO_RESULTS[prompts.TASK_COMPARE]
    assert generator.prompts == []

    repo.add(make_product("a", name="Alpha Phone"), make_product("b", name="Beta Phone", active=False))
    res = asyncio.run(rag.compare_products(["a", "b"]))

    assert res.context_documents_used == 2
    assert "Alpha Phone" in generator.prompts[0]
    assert "Beta Phone" in generator.prompts[0]


def test_product_faq_uses_product_and_related_docs(rag, repo, store, generator):
    repo.add(make_product("p1", name="Kettle"))
    store.hits = [hit("p1", 0.95), hit("p2", 0.9)]

    res = asyncio.run(rag.answer_product_faq("p1", "Is it cordless?"))

    assert res.context_documents_used == 2
    assert store.search_calls[0] == ("Kettle Is it cordless?", 2, 0.7)
    assert "Is it cordless?" in generator.prompts[0]


def test_product_faq_validation(rag, store):
    with pytest.raises(ValidationFailureError):
        asyncio.run(rag.answer_product_faq("p1", "  "))
    with pytest.raises(NotFoundError):
        asyncio.run(rag.answer_product_faq("missing", "Is it cordless?"))
    assert store.search_calls == []


def test_personalized_suggestions_widen_context(rag, store):
    asyncio.run(rag.personalized_suggestions(None, None))
    assert store.search_calls[0] == ("general customer general shopping shopping suggestions", 10, 0.7)


def test_personalized_description(rag, repo, generator):
    repo.add(make_product("p1", name="Yoga Mat", features=["non-slip"]))

    res = asyncio.run(rag.personalized_description("p1", "eco friendly"))

    assert res.context_documents_used == 1
    assert "Yoga Mat" in generator.prompts[0]
    assert "eco friendly" in generator.prompts[0]


def test_build_context_format():
    docs = [
        SearchHit(product_id="a", score=0.9, content="Product: A.", metadata={"price": 5, "rating": 4.5}),
        SearchHit(product_id="b", score=0.8, content="Product: B.", metadata={}),
    ]
    assert build_context(docs) == (
        "Product 1:\nProduct: A.\nAdditional Info: Price: $5.00, Rating: 4.50 stars\n\n"
        "Product 2:\nProduct: B.\n\n"
    )


def test_preview_truncates():
    assert preview("short") == "short"
    assert preview("x" * 300).endswith("…[truncated]")
    assert len(preview("x" * 300)) == 200 + len("…[truncated]")


class FakeCompletions:
    def __init__(self, error=None):
        self.error = error
        self.kwargs = None

    async def create(self, **kwargs):
        self.kwargs = kwargs
        if self.error:
            raise self.error
        message = SimpleNamespace(content="Try the blue one.")
        return SimpleNamespace(choices=[SimpleNamespace(message=message)], usage=None, model=kwargs["model"])


def test_openai_generator_wraps_plain_prompt():
    completions = FakeCompletions()
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    gen = OpenAITextGenerator(client, "gpt-4o-mini", temperature=0.3)

    assert asyncio.run(gen.generate("hello")) == "Try the blue one."
    assert completions.kwargs["messages"] == [{"role": "user", "content": "hello"}]
    assert completions.kwargs["temperature"] == 0.3


def test_openai_generator_failure():
    client = SimpleNamespace(chat=SimpleNamespace(completions=FakeCompletions(error=OpenAIError("quota"))))
    gen = OpenAITextGenerator(client, "gpt-4o-mini")
    with pytest.raises(CollaboratorUnavailableError) as exc:
        asyncio.run(gen.generate("hello"))
    assert exc.value.collaborator == "text generator"
