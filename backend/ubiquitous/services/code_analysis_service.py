"""
Code analysis service: checks how well source identifiers follow the catalog vocabulary
"""
import re
from typing import Any, Dict, List
from uuid import UUID

from rapidfuzz.distance import Levenshtein
from sqlalchemy.orm import Session

from ubiquitous.core.exceptions import NotFoundError, ValidationError
from ubiquitous.core.logging_config import LoggingConfig
from ubiquitous.models.analysis import CodeAnalysis
from ubiquitous.models.term import Term

logger = LoggingConfig.get_logger(__name__)

CLASS_PATTERN = re.compile(r"(?:export\s+)?(?:abstract\s+)?class\s+(\w+)")
PYTHON_FUNCTION_PATTERN = re.compile(r"(?:async\s+)?def\s+(\w+)\s*\(")
BRACE_FUNCTION_PATTERN = re.compile(r"(?:async\s+)?(?:function\s+)?(\w+)\s*\([^)]*\)\s*(?::\s*\w+\s*)?{")
DECLARED_VARIABLE_PATTERN = re.compile(r"(?:const|let|var)\s+(\w+)\s*[=:]")
PYTHON_VARIABLE_PATTERN = re.compile(r"^\s*([A-Za-z_]\w*)\s*(?::\s*[\w\[\], .]+)?\s*=(?!=)")

CONTROL_KEYWORDS = frozenset({"if", "for", "while", "switch", "catch", "elif", "return", "function"})
PYTHON_KEYWORDS = frozenset({"self", "cls", "return", "yield", "lambda", "import", "from"})

SUGGESTION_THRESHOLD = 0.5
MAX_SUGGESTIONS = 3


def split_identifier(identifier: str) -> List[str]:
    """Lowercase words of a camelCase, PascalCase or snake_case identifier"""
    spaced = re.sub(r"([a-z0-9])([A-Z])", r"\1 \2", identifier)
    spaced = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1 \2", spaced)
    return [word.lower() for word in re.split(r"[\s_]+", spaced) if word]


def normalize_identifier(identifier: str) -> str:
    return " ".join(split_identifier(identifier))


def similarity(a: str, b: str) -> float:
    """(len(longer) - edit distance) / len(longer); 1.0 for two empty strings"""
    longer = max(len(a), len(b))
    if longer == 0:
        return 1.0
    return (longer - Levenshtein.distance(a, b)) / longer


def extract_code_elements(code: str) -> List[Dict[str, Any]]:
    """Classes, functions and variables found in the source, with 1-based line numbers"""
    elements = []
    for number, line in enumerate(code.splitlines(), start=1):
        for match in CLASS_PATTERN.finditer(line):
            elements.append({"type": "class", "name": match.group(1), "line": number})

        functions = [m.group(1) for m in PYTHON_FUNCTION_PATTERN.finditer(line)]
        if not functions:
            functions = [
                m.group(1) for m in BRACE_FUNCTION_PATTERN.finditer(line)
                if m.group(1) not in CONTROL_KEYWORDS
            ]
        if "class " not in line:
            for name in functions:
                elements.append({"type": "method", "name": name, "line": number})

        variables = [m.group(1) for m in DECLARED_VARIABLE_PATTERN.finditer(line)]
        if not variables:
            match = PYTHON_VARIABLE_PATTERN.match(line)
            if match and match.group(1) not in PYTHON_KEYWORDS:
                variables = [match.group(1)]
        for name in variables:
            elements.append({"type": "variable", "name": name, "line": number})
    return elements


class CodeAnalysisService:
    """Service matching code identifiers against catalog terms"""

    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def _match_term(identifier: str, term_names: List[str]) -> Any:
        normalized = normalize_identifier(identifier)
        words = split_identifier(identifier)
        for term_name in term_names:
            normalized_term = term_name.lower().strip()
            if not normalized_term:
                continue
            if (
                normalized == normalized_term
                or normalized_term in normalized
                or (normalized and normalized in normalized_term)
                or normalized_term in words
            ):
                return term_name
        return None

    @staticmethod
    def _suggest(identifier: str, term_names: List[str]) -> List[str]:
        normalized = normalize_identifier(identifier)
        scored = []
        for term_name in term_names:
            score = similarity(normalized, term_name.lower())
            if score > SUGGESTION_THRESHOLD:
                scored.append((score, term_name))
        scored.sort(key=lambda item: (-item[0], item[1]))
        return [name for _, name in scored[:MAX_SUGGESTIONS]]

    def analyze_code(self, file_name: str, code: str, uploaded_by: str) -> CodeAnalysis:
        """
        Extract identifiers from a source file and match them against term names

        Returns:
            The stored CodeAnalysis row
        """
        if not file_name or not file_name.strip():
            raise ValidationError("File name is required")
        if code is None or not code.strip():
            raise ValidationError("Source code is empty")

        term_names = sorted({
            row[0] for row in self.db.query(Term.name).filter(Term.deleted_at.is_(None)).all()
        }, key=lambda name: (-len(name), name))

        elements = []
        for element in extract_code_elements(code):
            matched_term = self._match_term(element["name"], term_names)
            elements.append({
                **element,
                "matched": matched_term is not None,
                "matched_term": matched_term,
                "suggestions": [] if matched_term else self._suggest(element["name"], term_names),
            })

        matched = sum(1 for element in elements if element["matched"])
        match_rate = round(matched / len(elements) * 100, 2) if elements else 0.0

        analysis = CodeAnalysis(
            file_name=file_name.strip(),
            uploaded_by=uploaded_by,
            extracted_elements=elements,
            match_rate=match_rate,
        )
        try:
            self.db.add(analysis)
            self.db.commit()
            self.db.refresh(analysis)
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"Analyzed {file_name}: {matched}/{len(elements)} identifiers match catalog terms",
            extra={"analysis_id": str(analysis.id), "user_id": uploaded_by}
        )
        return analysis

    def get_analysis(self, analysis_id: UUID) -> CodeAnalysis:
        analysis = self.db.query(CodeAnalysis).filter(CodeAnalysis.id == analysis_id).first()
        if not analysis:
            raise NotFoundError("Code analysis", analysis_id)
        return analysis

    def get_report(self, analysis_id: UUID) -> Dict[str, Any]:
        analysis = self.get_analysis(analysis_id)
        elements = list(analysis.extracted_elements or [])
        matched = [e for e in elements if e.get("matched")]
        unmatched = [e for e in elements if not e.get("matched")]
        return {
            "id": analysis.id,
            "file_name": analysis.file_name,
            "uploaded_by": analysis.uploaded_by,
            "uploaded_at": analysis.uploaded_at,
            "total_elements": len(elements),
            "matched_elements": len(matched),
            "unmatched_elements": len(unmatched),
            "match_rate": analysis.match_rate,
            "elements": elements,
            "suggestions": [
                {
                    "element": e["type"],
                    "current_name": e["name"],
                    "suggested_names": e["suggestions"],
                }
                for e in unmatched if e.get("suggestions")
            ],
        }

    def list_analyses(self, limit: int = 50) -> List[CodeAnalysis]:
        return self.db.query(CodeAnalysis).order_by(CodeAnalysis.uploaded_at.desc()).limit(limit).all()
