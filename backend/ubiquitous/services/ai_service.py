"""
AI assistant: LLM-backed definition review and glossary Q&A
"""
import json
import re
from typing import Any, Dict, List, Optional
from uuid import UUID

from rapidfuzz import fuzz
from rapidfuzz.distance import Levenshtein
from sqlalchemy.orm import Session

from ubiquitous.core.exceptions import (ExternalServiceError, NotFoundError,
                                        ServiceUnavailableError)
from ubiquitous.core.llm_client import (LLMClient, LLMError, LLMResponse,
                                        get_llm_client)
from ubiquitous.core.logging_config import LoggingConfig
from ubiquitous.models.analysis import AIAnalysis, AIAnalysisType
from ubiquitous.models.bounded_context import BoundedContext
from ubiquitous.models.term import Term

logger = LoggingConfig.get_logger(__name__)

SYSTEM_PROMPT = (
    "You are an assistant for a domain-driven design team maintaining a ubiquitous language "
    "glossary. Be precise and concise. When asked for JSON, reply with JSON only."
)

CLARITY_PROMPT = """Rate the clarity of this glossary definition from 0 to 100.

Definition:
{definition}

Reply as JSON: {{"score": <0-100>, "issues": ["..."], "suggestions": ["..."]}}"""

CONSISTENCY_PROMPT = """A new term is being added to the bounded context "{context}".

Existing terms in this context:
{glossary}

New term: {name}
Definition: {definition}

Does the new term conflict with or duplicate existing terms?
Reply as JSON: {{"consistent": true|false, "conflicts": ["..."], "notes": "..."}}"""

SUGGESTIONS_PROMPT = """Suggest concrete improvements to this glossary definition.

Definition:
{definition}

Reply as JSON: {{"suggestions": ["..."]}}"""

QUESTION_PROMPT = """Answer the question using only the glossary below. If the glossary does not
cover it, say so.

Glossary:
{glossary}

Question: {question}"""

SIMILARITY_THRESHOLD = 0.4
NAME_WEIGHT = 0.7


def parse_json_reply(text: str) -> Dict[str, Any]:
    """Extract the JSON object from an LLM reply, tolerating code fences and surrounding prose"""
    cleaned = re.sub(r"```(?:json)?", "", text or "").strip()
    match = re.search(r"\{.*\}", cleaned, re.DOTALL)
    if not match:
        raise ExternalServiceError("LLM reply did not contain a JSON object")
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise ExternalServiceError(f"LLM reply was not valid JSON: {e}")
    if not isinstance(data, dict):
        raise ExternalServiceError("LLM reply was not a JSON object")
    return data


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if str(item).strip()]


class AIService:
    """Service wrapping the LLM client with catalog-aware prompts"""

    def __init__(self, db: Session, llm_client: Optional[LLMClient] = None):
        self.db = db
        self._llm = llm_client

    @property
    def llm(self) -> LLMClient:
        client = self._llm or get_llm_client()
        if client is None:
            raise ServiceUnavailableError("LLM assistant is not configured (set OLLAMA_URL)")
        return client

    async def _generate(self, prompt: str, analysis_type: AIAnalysisType) -> LLMResponse:
        try:
            return await self.llm.generate(
                prompt,
                system_prompt=SYSTEM_PROMPT,
                analysis_type=analysis_type.value,
            )
        except LLMError as e:
            logger.error(f"LLM {analysis_type.value} request failed: {e}", exc_info=True)
            raise ExternalServiceError(str(e))

    def _store(self, analysis_type: AIAnalysisType, input_text: str, response: LLMResponse, **fields) -> AIAnalysis:
        analysis = AIAnalysis(
            analysis_type=analysis_type.value,
            input_text=input_text,
            output_text=response.response,
            model=response.model,
            **fields
        )
        try:
            self.db.add(analysis)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return analysis

    def _get_term(self, term_id: UUID) -> Term:
        term = self.db.query(Term).filter(Term.id == term_id, Term.deleted_at.is_(None)).first()
        if not term:
            raise NotFoundError("Term", term_id)
        return term

    # ------------------------------------------------------------------
    # LLM-backed operations
    # ------------------------------------------------------------------

    async def analyze_clarity(self, definition: str, term_id: Optional[UUID] = None) -> Dict[str, Any]:
        """
        Score how clear a definition is

        When ``term_id`` is given the score is also stored as the term's quality score.
        """
        term = self._get_term(term_id) if term_id else None
        response = await self._generate(CLARITY_PROMPT.format(definition=definition), AIAnalysisType.CLARITY)
        data = parse_json_reply(response.response)

        try:
            score = int(round(float(data.get("score", 0))))
        except (TypeError, ValueError):
            raise ExternalServiceError(f"LLM returned an invalid clarity score: {data.get('score')!r}")
        result = {
            "score": max(0, min(100, score)),
            "issues": _string_list(data.get("issues")),
            "suggestions": _string_list(data.get("suggestions")),
        }

        if term is not None:
            term.quality_score = result["score"]
        self._store(
            AIAnalysisType.CLARITY,
            definition,
            response,
            term_id=term.id if term else None,
            clarity_score=result["score"],
            suggestions=result["suggestions"],
        )
        return result

    async def check_consistency(self, name: str, definition: str, context_id: UUID) -> Dict[str, Any]:
        context = self.db.query(BoundedContext).filter(BoundedContext.id == context_id).first()
        if not context:
            raise NotFoundError("Bounded context", context_id)

        prompt = CONSISTENCY_PROMPT.format(
            context=context.name,
            glossary=self._glossary_lines(context_id) or "(none yet)",
            name=name,
            definition=definition,
        )
        response = await self._generate(prompt, AIAnalysisType.CONSISTENCY)
        data = parse_json_reply(response.response)
        conflicts = _string_list(data.get("conflicts"))
        result = {
            "consistent": bool(data.get("consistent", not conflicts)),
            "conflicts": conflicts,
            "notes": data.get("notes") or None,
        }
        self._store(AIAnalysisType.CONSISTENCY, f"{name}: {definition}", response)
        return result

    async def suggest_improvements(self, definition: str) -> List[str]:
        response = await self._generate(
            SUGGESTIONS_PROMPT.format(definition=definition), AIAnalysisType.SUGGESTION
        )
        try:
            suggestions = _string_list(parse_json_reply(response.response).get("suggestions"))
        except ExternalServiceError:
            # plain list reply
            suggestions = [
                re.sub(r"^\s*(?:[-*]|\d+[.)])\s*", "", line).strip()
                for line in response.response.splitlines()
                if re.match(r"^\s*(?:[-*]|\d+[.)])\s+", line)
            ]
        self._store(AIAnalysisType.SUGGESTION, definition, response, suggestions=suggestions)
        return suggestions

    async def answer_question(self, question: str, context_id: Optional[UUID] = None) -> Dict[str, Any]:
        glossary = self.build_knowledge_context(context_id)
        response = await self._generate(
            QUESTION_PROMPT.format(glossary=glossary, question=question), AIAnalysisType.QA
        )

        answer_lower = response.response.lower()
        referenced = sorted({
            term.name for term in self._terms(context_id)
            if re.search(rf"\b{re.escape(term.name.lower())}\b", answer_lower)
        })
        self._store(AIAnalysisType.QA, question, response)
        return {"answer": response.response, "model": response.model, "referenced_terms": referenced}

    # ------------------------------------------------------------------
    # Local operations
    # ------------------------------------------------------------------

    def _terms(self, context_id: Optional[UUID] = None) -> List[Term]:
        query = self.db.query(Term).filter(Term.deleted_at.is_(None))
        if context_id:
            query = query.filter(Term.bounded_context_id == context_id)
        return query.order_by(Term.name).all()

    def _glossary_lines(self, context_id: Optional[UUID] = None) -> str:
        return "\n".join(f"- {term.name}: {term.definition}" for term in self._terms(context_id))

    def build_knowledge_context(self, context_id: Optional[UUID] = None) -> str:
        """Plain-text glossary grouped by bounded context"""
        query = self.db.query(BoundedContext)
        if context_id:
            query = query.filter(BoundedContext.id == context_id)
        contexts = query.order_by(BoundedContext.name).all()
        if context_id and not contexts:
            raise NotFoundError("Bounded context", context_id)

        sections = []
        for context in contexts:
            header = f"Bounded context: {context.name}"
            if context.description:
                header = f"{header} ({context.description})"
            lines = self._glossary_lines(context.id)
            sections.append(f"{header}\n{lines}" if lines else header)
        return "\n\n".join(sections)

    def find_similar_terms(
        self,
        name: str,
        definition: Optional[str] = None,
        limit: int = 5
    ) -> List[Dict[str, Any]]:
        """Existing terms resembling a candidate name and definition, most similar first"""
        candidate = name.strip().lower()
        matches = []
        for term in self._terms():
            name_score = Levenshtein.normalized_similarity(candidate, term.name.lower())
            if candidate and (candidate in term.name.lower() or term.name.lower() in candidate):
                name_score = max(name_score, 0.8)

            if definition:
                definition_score = fuzz.token_set_ratio(definition.lower(), term.definition.lower()) / 100.0
                score = NAME_WEIGHT * name_score + (1 - NAME_WEIGHT) * definition_score
            else:
                definition_score = 0.0
                score = name_score

            if score < SIMILARITY_THRESHOLD:
                continue
            reasons = []
            if name_score >= 0.5:
                reasons.append("similar name")
            if definition_score >= 0.5:
                reasons.append("overlapping definition")
            matches.append({
                "id": term.id,
                "name": term.name,
                "context_name": term.context_name,
                "similarity": round(score, 3),
                "reason": " and ".join(reasons).capitalize() or "Weak overall resemblance",
            })

        matches.sort(key=lambda m: (-m["similarity"], m["name"]))
        return matches[:limit]
