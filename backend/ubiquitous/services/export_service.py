"""
Export the catalog as a JSON document or as Markdown documentation
"""
import re
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from ubiquitous.core.logging_config import LoggingConfig
from ubiquitous.models.bounded_context import BoundedContext
from ubiquitous.models.discussion import DiscussionThread
from ubiquitous.models.review import Review
from ubiquitous.models.term import Term, TermContext
from ubiquitous.models.term_proposal import TermProposal
from ubiquitous.models.term_relationship import TermRelationship
from ubiquitous.utils.datetime_utils import utc_now_iso

logger = LoggingConfig.get_logger(__name__)

EXPORT_VERSION = "1.0.0"


def slugify(text: str) -> str:
    """Markdown heading anchor for a name"""
    slug = text.lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[\s_-]+", "-", slug)
    return slug.strip("-")


def _iso(value) -> Any:
    return value.isoformat() if value else None


class ExportService:
    """Service producing portable snapshots of the catalog"""

    def __init__(self, db: Session):
        self.db = db

    def _terms(self) -> List[Term]:
        return self.db.query(Term).filter(Term.deleted_at.is_(None)).order_by(Term.name).all()

    def export_json(self) -> Dict[str, Any]:
        """
        Snapshot of the whole catalog

        References between items use names rather than IDs so the document
        can be imported into another installation.
        """
        contexts = self.db.query(BoundedContext).order_by(BoundedContext.name).all()
        terms = self._terms()
        live_ids = {term.id for term in terms}

        term_contexts = self.db.query(TermContext).filter(
            TermContext.term_id.in_(live_ids)
        ).all() if live_ids else []
        relationships = self.db.query(TermRelationship).filter(
            TermRelationship.source_term_id.in_(live_ids),
            TermRelationship.target_term_id.in_(live_ids)
        ).order_by(TermRelationship.created_at).all() if live_ids else []
        proposals = self.db.query(TermProposal).order_by(TermProposal.proposed_at).all()
        threads = self.db.query(DiscussionThread).order_by(DiscussionThread.created_at).all()
        reviews = self.db.query(Review).filter(
            Review.term_id.in_(live_ids)
        ).order_by(Review.reviewed_at).all() if live_ids else []

        data = {
            "version": EXPORT_VERSION,
            "exportedAt": utc_now_iso(),
            "contexts": [
                {"name": context.name, "description": context.description}
                for context in contexts
            ],
            "terms": [
                {
                    "name": term.name,
                    "definition": term.definition,
                    "contextName": term.context_name,
                    "status": term.status,
                    "examples": list(term.examples or []),
                    "usageNotes": term.usage_notes,
                    "essentialForOnboarding": term.essential_for_onboarding,
                    "reviewCycleDays": term.review_cycle_days,
                }
                for term in terms
            ],
            "termContexts": [
                {
                    "termName": tc.term.name,
                    "termContext": tc.term.context_name,
                    "contextName": tc.context_name,
                    "definition": tc.definition,
                    "examples": list(tc.examples or []),
                }
                for tc in term_contexts
            ],
            "relationships": [
                {
                    "sourceTerm": rel.source_term.name,
                    "targetTerm": rel.target_term.name,
                    "sourceContext": rel.source_term.context_name,
                    "targetContext": rel.target_term.context_name,
                    "relationshipType": rel.relationship_type,
                    "description": rel.description,
                }
                for rel in relationships
            ],
            "proposals": [
                {
                    "name": proposal.name,
                    "definition": proposal.definition,
                    "contextName": proposal.bounded_context.name if proposal.bounded_context else None,
                    "status": proposal.status,
                    "proposedBy": proposal.proposed_by,
                    "proposedAt": _iso(proposal.proposed_at),
                    "approvedBy": proposal.approved_by,
                    "approvedAt": _iso(proposal.approved_at),
                    "rejectionReason": proposal.rejection_reason,
                }
                for proposal in proposals
            ],
            "discussions": [self._thread(thread) for thread in threads],
            "reviews": [
                {
                    "termName": review.term.name,
                    "contextName": review.term.context_name,
                    "status": review.status,
                    "notes": review.notes,
                    "reviewedBy": review.reviewed_by,
                    "reviewedAt": _iso(review.reviewed_at),
                }
                for review in reviews
            ],
        }
        logger.info(f"Exported {len(terms)} terms from {len(contexts)} contexts")
        return data

    @staticmethod
    def _thread(thread: DiscussionThread) -> Dict[str, Any]:
        if thread.term is not None:
            target = {"type": "term", "name": thread.term.name, "contextName": thread.term.context_name}
        elif thread.proposal is not None:
            target = {"type": "proposal", "name": thread.proposal.name, "contextName": None}
        else:
            target = None
        return {
            "title": thread.title,
            "status": thread.status,
            "target": target,
            "createdBy": thread.created_by,
            "createdAt": _iso(thread.created_at),
            "comments": [
                {
                    "content": comment.content,
                    "postedBy": comment.posted_by,
                    "postedAt": _iso(comment.posted_at),
                }
                for comment in thread.comments
            ],
        }

    def export_markdown(self) -> str:
        """Human-readable glossary grouped by bounded context"""
        contexts = self.db.query(BoundedContext).order_by(BoundedContext.name).all()

        lines = [
            "# Ubiquitous Language Documentation",
            "",
            f"Generated on: {utc_now_iso()}",
            "",
            "---",
            "",
            "## Table of Contents",
            "",
        ]
        for context in contexts:
            lines.append(f"- [{context.name}](#{slugify(context.name)})")
        lines.extend(["", "---", ""])

        for context in contexts:
            lines.extend([f"## {context.name}", ""])
            if context.description:
                lines.extend([context.description, ""])

            entries = self._context_entries(context)
            if not entries:
                lines.extend(["*No terms defined in this context yet.*", "", ""])
                continue

            lines.extend(["### Terms", ""])
            for term, definition, examples in entries:
                lines.extend(self._term_section(term, definition, examples))
            lines.append("")

        return "\n".join(lines)

    def _context_entries(self, context: BoundedContext):
        """Terms defined in a context: primary terms plus additional per-context definitions"""
        entries = [
            (term, term.definition, term.examples)
            for term in self.db.query(Term).filter(
                Term.bounded_context_id == context.id,
                Term.deleted_at.is_(None)
            ).all()
        ]
        extra = self.db.query(TermContext).join(Term, Term.id == TermContext.term_id).filter(
            TermContext.context_id == context.id,
            Term.deleted_at.is_(None)
        ).all()
        entries.extend((tc.term, tc.definition, tc.examples) for tc in extra)
        return sorted(entries, key=lambda entry: entry[0].name.lower())

    def _term_section(self, term: Term, definition: str, examples) -> List[str]:
        lines = [f"#### {term.name}", "", f"**Status:** `{term.status}`", ""]

        if definition:
            lines.extend(["**Definition:**", "", definition, ""])

        if examples:
            lines.extend(["**Examples:**", ""])
            lines.extend(f"- {example}" for example in examples)
            lines.append("")

        outgoing = [
            rel for rel in term.outgoing_relationships
            if rel.target_term is not None and not rel.target_term.is_deleted
        ]
        if outgoing:
            lines.extend(["**Relationships:**", ""])
            for rel in outgoing:
                lines.append(f"- **{rel.relationship_type}:** {rel.target_term.name}")
                if rel.description:
                    lines.append(f"  - {rel.description}")
            lines.append("")

        if term.reviews:
            latest = term.reviews[0]
            lines.extend(["**Latest Review:**", ""])
            lines.append(f"- Status: `{latest.status}` ({latest.reviewed_at.date().isoformat()})")
            if latest.notes:
                lines.append(f"- Notes: {latest.notes}")
            lines.append("")

        lines.extend(["---", ""])
        return lines
