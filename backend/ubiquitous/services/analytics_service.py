"""
Analytics service: usage tracking and catalog health metrics
"""
import csv
import io
from datetime import timedelta
from typing import Any, Dict, List, Optional, Union

from sqlalchemy import func
from sqlalchemy.orm import Session

from ubiquitous.core.exceptions import ValidationError
from ubiquitous.core.logging_config import LoggingConfig
from ubiquitous.models.bounded_context import BoundedContext
from ubiquitous.models.discussion import Comment, DiscussionThread, ThreadStatus
from ubiquitous.models.review import Review
from ubiquitous.models.term import Term, TermContext, TermStatus
from ubiquitous.models.term_proposal import ProposalStatus, TermProposal
from ubiquitous.models.term_relationship import (RelationshipType,
                                                 TermRelationship)
from ubiquitous.models.user_learning import UserActivity, UserLearning
from ubiquitous.utils.datetime_utils import utc_now, utc_now_iso

logger = LoggingConfig.get_logger(__name__)

ACTIVE_USER_WINDOW = timedelta(days=7)
EXPORT_FORMATS = ("json", "csv")


class AnalyticsService:
    """Service computing dashboard and reporting metrics"""

    def __init__(self, db: Session):
        self.db = db

    def track_user_activity(
        self,
        user_id: str,
        action: str,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> UserActivity:
        activity = UserActivity(
            user_id=user_id,
            action=action,
            resource_type=resource_type,
            resource_id=str(resource_id) if resource_id is not None else None,
            details=details,
        )
        try:
            self.db.add(activity)
            self.db.commit()
            self.db.refresh(activity)
        except Exception:
            self.db.rollback()
            raise
        return activity

    def _count(self, column, *criteria) -> int:
        return self.db.query(func.count(column)).filter(*criteria).scalar() or 0

    def _grouped(self, column, key) -> Dict[str, int]:
        rows = self.db.query(key, func.count(column)).group_by(key).all()
        return {k: count for k, count in rows}

    def _live_terms(self) -> List[Term]:
        return self.db.query(Term).filter(Term.deleted_at.is_(None)).all()

    # ------------------------------------------------------------------
    # Metric groups
    # ------------------------------------------------------------------

    def get_system_metrics(self) -> Dict[str, Any]:
        term_status = self._grouped(Term.id, Term.status)
        proposal_status = self._grouped(TermProposal.id, TermProposal.status)
        relationship_types = self._grouped(TermRelationship.id, TermRelationship.relationship_type)
        thread_status = self._grouped(DiscussionThread.id, DiscussionThread.status)

        terms = {"total": self._count(Term.id, Term.deleted_at.is_(None))}
        terms.update({s.value: term_status.get(s.value, 0) for s in TermStatus})
        terms["deleted"] = self._count(Term.id, Term.deleted_at.isnot(None))

        proposals = {"total": sum(proposal_status.values())}
        proposals.update({s.value: proposal_status.get(s.value, 0) for s in ProposalStatus})

        relationships = {"total": sum(relationship_types.values())}
        relationships.update({t.value: relationship_types.get(t.value, 0) for t in RelationshipType})

        threads = {"total": sum(thread_status.values())}
        threads.update({s.value: thread_status.get(s.value, 0) for s in ThreadStatus})

        return {
            "terms": terms,
            "contexts": self._count(BoundedContext.id),
            "proposals": proposals,
            "relationships": relationships,
            "threads": threads,
            "comments": self._count(Comment.id),
            "reviews": self._count(Review.id),
        }

    def _active_users_since(self, since) -> int:
        users = set()
        sources = (
            (UserActivity.user_id, UserActivity.created_at),
            (TermProposal.proposed_by, TermProposal.proposed_at),
            (Review.reviewed_by, Review.reviewed_at),
            (Comment.posted_by, Comment.posted_at),
            (UserLearning.user_id, UserLearning.learned_at),
        )
        for user_column, time_column in sources:
            rows = self.db.query(user_column).filter(time_column >= since).distinct().all()
            users.update(row[0] for row in rows)
        return len(users)

    def get_user_activity_metrics(self) -> Dict[str, Any]:
        def distinct(column) -> int:
            return self.db.query(func.count(func.distinct(column))).scalar() or 0

        return {
            "unique_proposers": distinct(TermProposal.proposed_by),
            "unique_reviewers": distinct(Review.reviewed_by),
            "unique_commenters": distinct(Comment.posted_by),
            "unique_learners": distinct(UserLearning.user_id),
            "active_users_last_7_days": self._active_users_since(utc_now() - ACTIVE_USER_WINDOW),
        }

    def get_coverage_metrics(self) -> Dict[str, Any]:
        """
        How well the catalog is maintained

        coverage_rate is the percentage of non-deleted terms reviewed at least once.
        """
        terms = self._live_terms()
        total = len(terms)
        term_ids = {term.id for term in terms}

        related = set()
        for source_id, target_id in self.db.query(
            TermRelationship.source_term_id, TermRelationship.target_term_id
        ).all():
            related.add(source_id)
            related.add(target_id)

        reviewed = {row[0] for row in self.db.query(Review.term_id).distinct().all()}

        extra_contexts: Dict[Any, int] = {}
        for term_id, count in self.db.query(
            TermContext.term_id, func.count(TermContext.id)
        ).group_by(TermContext.term_id).all():
            extra_contexts[term_id] = count

        with_relationships = len(term_ids & related)
        with_reviews = len(term_ids & reviewed)
        with_extra_contexts = len(term_ids & set(extra_contexts))
        total_contexts = sum(1 + extra_contexts.get(term.id, 0) for term in terms)

        return {
            "total_terms": total,
            "terms_with_relationships": with_relationships,
            "terms_reviewed": with_reviews,
            "essential_terms": sum(1 for term in terms if term.essential_for_onboarding),
            "terms_with_examples": sum(1 for term in terms if term.examples),
            "terms_with_extra_contexts": with_extra_contexts,
            "average_contexts_per_term": round(total_contexts / total, 2) if total else 0.0,
            "coverage_rate": round(with_reviews / total * 100, 2) if total else 0.0,
        }

    def _term_usage(self, column, limit: int) -> List[Dict[str, Any]]:
        terms = self.db.query(Term).filter(
            Term.deleted_at.is_(None),
            column > 0
        ).order_by(column.desc(), Term.name).limit(limit).all()
        return [{"id": term.id, "name": term.name, "count": getattr(term, column.key)} for term in terms]

    def get_most_viewed_terms(self, limit: int = 10) -> List[Dict[str, Any]]:
        return self._term_usage(Term.view_count, limit)

    def get_most_searched_terms(self, limit: int = 10) -> List[Dict[str, Any]]:
        return self._term_usage(Term.search_count, limit)

    def _top_users(self, column, limit: int) -> List[Dict[str, Any]]:
        count = func.count().label("count")
        rows = self.db.query(column, count).group_by(column).order_by(
            count.desc(), column
        ).limit(limit).all()
        return [{"user_id": user_id, "count": n} for user_id, n in rows]

    def get_top_proposers(self, limit: int = 10) -> List[Dict[str, Any]]:
        return self._top_users(TermProposal.proposed_by, limit)

    def get_top_reviewers(self, limit: int = 10) -> List[Dict[str, Any]]:
        return self._top_users(Review.reviewed_by, limit)

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------

    def get_metrics(self) -> Dict[str, Any]:
        """Dashboard payload"""
        coverage = self.get_coverage_metrics()
        return {
            "active_users_this_week": self._active_users_since(utc_now() - ACTIVE_USER_WINDOW),
            "total_terms": coverage["total_terms"],
            "coverage_rate": coverage["coverage_rate"],
            "most_viewed_terms": self.get_most_viewed_terms(5),
            "most_searched_terms": self.get_most_searched_terms(5),
        }

    def get_all_metrics(self) -> Dict[str, Any]:
        return {
            "generated_at": utc_now_iso(),
            "system": self.get_system_metrics(),
            "user_activity": self.get_user_activity_metrics(),
            "coverage": self.get_coverage_metrics(),
            "most_viewed_terms": self.get_most_viewed_terms(),
            "most_searched_terms": self.get_most_searched_terms(),
            "top_proposers": self.get_top_proposers(),
            "top_reviewers": self.get_top_reviewers(),
        }

    def export_metrics(self, format: str = "json") -> Union[Dict[str, Any], str]:
        """Every metric as a dict (json) or as Category,Metric,Value rows (csv)"""
        format = (format or "").lower()
        if format not in EXPORT_FORMATS:
            raise ValidationError(f'Unsupported export format "{format}". Use json or csv')

        metrics = self.get_all_metrics()
        if format == "json":
            return metrics

        output = io.StringIO()
        writer = csv.writer(output)
        writer.writerow(["Category", "Metric", "Value"])
        for category, value in metrics.items():
            if category == "generated_at":
                continue
            for metric, metric_value in self._flatten(value):
                writer.writerow([category, metric, metric_value])
        return output.getvalue()

    @classmethod
    def _flatten(cls, value: Any, prefix: str = ""):
        if isinstance(value, dict):
            for key, item in value.items():
                yield from cls._flatten(item, f"{prefix}.{key}" if prefix else str(key))
        elif isinstance(value, list):
            for entry in value:
                label = entry.get("name") or entry.get("user_id")
                yield f"{prefix}.{label}" if prefix else str(label), entry.get("count", 0)
        else:
            yield prefix or "value", value
