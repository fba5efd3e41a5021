"""
Web pages for the term relationship graph
"""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Form, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.orm import Session

from ubiquitous.core.auth import get_current_user_id
from ubiquitous.core.database import get_db
from ubiquitous.core.exceptions import UbiquitousError, ValidationError
from ubiquitous.core.templates import templates
from ubiquitous.models.term_relationship import RelationshipType
from ubiquitous.services.context_service import ContextService
from ubiquitous.services.relationship_service import RelationshipService
from ubiquitous.services.term_service import TermService

router = APIRouter(tags=["relationships_pages"])


def _mermaid(diagram: dict) -> str:
    """Mermaid flowchart source for the diagram data"""
    lines = ["graph LR"]
    for node in diagram["nodes"]:
        label = node["label"].replace('"', "'")
        lines.append(f'    n{node["id"].replace("-", "")}["{label}"]')
    for edge in diagram["edges"]:
        source = edge["source"].replace("-", "")
        target = edge["target"].replace("-", "")
        lines.append(f'    n{source} -->|{edge["label"]}| n{target}')
    return "\n".join(lines)


def _render(request: Request, db: Session, context_id: Optional[UUID],
            error: Optional[str] = None, values: Optional[dict] = None, status_code: int = 200):
    service = RelationshipService(db)
    diagram = service.get_diagram_data(context_id)
    names = {node["id"]: node["label"] for node in diagram["nodes"]}
    return templates.TemplateResponse(
        request,
        "relationships/index.html",
        {
            "diagram": diagram,
            "names": names,
            "mermaid": _mermaid(diagram),
            "cycles": service.validate_no_circular_dependency(),
            "contexts": ContextService(db).list_contexts(),
            "terms": TermService(db).list_terms(limit=1000),
            "relationship_types": [t.value for t in RelationshipType],
            "context_id": str(context_id) if context_id else "",
            "values": values or {},
            "error": error,
        },
        status_code=status_code
    )


@router.get("/relationships", response_class=HTMLResponse)
async def relationships_page(
    request: Request,
    context_id: Optional[UUID] = Query(None),
    db: Session = Depends(get_db)
):
    """Relationship diagram, edge list and cycle check"""
    return _render(request, db, context_id)


@router.post("/relationships", response_class=HTMLResponse)
async def relationship_create(
    request: Request,
    source_term_id: str = Form(""),
    target_term_id: str = Form(""),
    relationship_type: str = Form(""),
    description: str = Form(""),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    values = {
        "source_term_id": source_term_id,
        "target_term_id": target_term_id,
        "relationship_type": relationship_type,
        "description": description,
    }
    try:
        try:
            source_id, target_id = UUID(source_term_id), UUID(target_term_id)
        except ValueError:
            raise ValidationError("Choose both a source and a target term")
        RelationshipService(db).create_relationship(
            source_id, target_id, relationship_type, user_id, description=description or None
        )
    except UbiquitousError as e:
        return _render(request, db, None, error=e.message, values=values, status_code=e.status_code)
    return RedirectResponse(url="/relationships", status_code=303)


@router.post("/relationships/{relationship_id}/delete")
async def relationship_delete(relationship_id: UUID, db: Session = Depends(get_db)):
    RelationshipService(db).delete_relationship(relationship_id)
    return RedirectResponse(url="/relationships", status_code=303)
