"""
SQLAlchemy models
"""
from ubiquitous.core.database import Base
from ubiquitous.models.analysis import (AIAnalysis,  # noqa: F401
                                        AIAnalysisType, CodeAnalysis)
from ubiquitous.models.bounded_context import BoundedContext  # noqa: F401
from ubiquitous.models.discussion import (Comment,  # noqa: F401
                                          DiscussionThread, ThreadStatus)
from ubiquitous.models.review import Review, ReviewStatus  # noqa: F401
from ubiquitous.models.term import (Term, TermContext,  # noqa: F401
                                    TermHistory, TermStatus)
from ubiquitous.models.term_proposal import (  # noqa: F401
    DECIDED_PROPOSAL_STATUSES, ProposalStatus, TermProposal)
from ubiquitous.models.term_relationship import (  # noqa: F401
    ACYCLIC_RELATIONSHIP_TYPES, RelationshipType, TermRelationship)
from ubiquitous.models.user_learning import (UserActivity,  # noqa: F401
                                             UserLearning)

__all__ = [
    "Base",
    "AIAnalysis",
    "AIAnalysisType",
    "BoundedContext",
    "CodeAnalysis",
    "Comment",
    "DECIDED_PROPOSAL_STATUSES",
    "DiscussionThread",
    "ACYCLIC_RELATIONSHIP_TYPES",
    "ProposalStatus",
    "RelationshipType",
    "Review",
    "ReviewStatus",
    "Term",
    "TermContext",
    "TermHistory",
    "TermProposal",
    "TermRelationship",
    "TermStatus",
    "ThreadStatus",
    "UserActivity",
    "UserLearning",
]
