"""
Unit tests for AIService with a mocked LLM client
"""
from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest

from ubiquitous.core.exceptions import (ExternalServiceError, NotFoundError,
                                        ServiceUnavailableError)
from ubiquitous.core.llm_client import LLMClient, LLMError, LLMResponse
from ubiquitous.models.analysis import AIAnalysis
from ubiquitous.services.ai_service import AIService, parse_json_reply


def _llm(reply: str) -> Mock:
    llm = Mock(spec=LLMClient)
    llm.generate = AsyncMock(return_value=LLMResponse(model="llama3", response=reply, done=True))
    return llm


@pytest.fixture
def glossary(make_term):
    return {
        "order": make_term("Order", definition="A customer's request to buy products"),
        "product": make_term("Product", definition="Something we sell"),
        "zebra": make_term("Zebra", definition="Striped animal"),
    }


def test_parse_json_reply_strips_fences():
    assert parse_json_reply('```json\n{"score": 80}\n```') == {"score": 80}
    assert parse_json_reply('Sure! {"ok": true} Hope that helps.') == {"ok": True}


def test_parse_json_reply_rejects_prose():
    with pytest.raises(ExternalServiceError):
        parse_json_reply("I cannot answer that")
    with pytest.raises(ExternalServiceError):
        parse_json_reply("{not json}")


@pytest.mark.asyncio
async def test_analyze_clarity_stores_score(db, glossary):
    llm = _llm('```json\n{"score": 120, "issues": ["vague"], "suggestions": ["Add an example", ""]}\n```')
    service = AIService(db, llm_client=llm)

    result = await service.analyze_clarity("A customer's request", term_id=glossary["order"].id)

    assert result == {"score": 100, "issues": ["vague"], "suggestions": ["Add an example"]}
    assert glossary["order"].quality_score == 100
    stored = db.query(AIAnalysis).one()
    assert stored.analysis_type == "clarity"
    assert stored.clarity_score == 100
    assert stored.model == "llama3"
    assert llm.generate.await_args.kwargs["analysis_type"] == "clarity"


@pytest.mark.asyncio
async def test_analyze_clarity_invalid_score(db):
    service = AIService(db, llm_client=_llm('{"score": "great"}'))
    with pytest.raises(ExternalServiceError):
        await service.analyze_clarity("Anything")


@pytest.mark.asyncio
async def test_check_consistency_includes_context_glossary(db, glossary, context):
    llm = _llm('{"consistent": false, "conflicts": ["Duplicates Order"], "notes": "Merge them"}')
    service = AIService(db, llm_client=llm)

    result = await service.check_consistency("Purchase", "A request to buy products", context.id)

    assert result == {"consistent": False, "conflicts": ["Duplicates Order"], "notes": "Merge them"}
    prompt = llm.generate.await_args.args[0]
    assert "- Order: A customer's request to buy products" in prompt
    assert 'bounded context "Sales"' in prompt


@pytest.mark.asyncio
async def test_check_consistency_unknown_context(db):
    service = AIService(db, llm_client=_llm("{}"))
    with pytest.raises(NotFoundError):
        await service.check_consistency("X", "Y", uuid4())


@pytest.mark.asyncio
async def test_suggest_improvements_from_plain_list(db):
    service = AIService(db, llm_client=_llm("Here you go:\n1. Add an example\n- Mention the customer\n"))
    assert await service.suggest_improvements("An order") == ["Add an example", "Mention the customer"]


@pytest.mark.asyncio
async def test_answer_question_lists_referenced_terms(db, glossary):
    service = AIService(db, llm_client=_llm("An Order contains products."))

    result = await service.answer_question("What does an order hold?")

    assert result["answer"] == "An Order contains products."
    assert result["referenced_terms"] == ["Order"]
    assert result["model"] == "llama3"


@pytest.mark.asyncio
async def test_llm_failure_is_external_error(db):
    llm = Mock(spec=LLMClient)
    llm.generate = AsyncMock(side_effect=LLMError("timed out"))
    with pytest.raises(ExternalServiceError):
        await AIService(db, llm_client=llm).suggest_improvements("An order")


def test_unconfigured_llm(db):
    with pytest.raises(ServiceUnavailableError):
        AIService(db).llm


def test_knowledge_context(db, glossary, other_context):
    text = AIService(db).build_knowledge_context()

    assert text.startswith("Bounded context: Sales (Order taking and pricing)\n- Order:")
    assert "Bounded context: Shipping (Delivery of orders)" in text


def test_find_similar_terms(db, glossary):
    matches = AIService(db).find_similar_terms("Orders")

    assert [m["name"] for m in matches] == ["Order"]
    assert matches[0]["reason"] == "Similar name"
    assert matches[0]["similarity"] == pytest.approx(0.833, abs=0.001)
