"""initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps(*names: str):
    return [
        sa.Column(name, sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now())
        for name in names
    ]


def upgrade() -> None:
    # Create bounded_contexts table
    op.create_table(
        'bounded_contexts',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_by', sa.String(255), nullable=True),
        *_timestamps('created_at', 'updated_at'),
    )
    op.create_index('ix_bounded_contexts_name', 'bounded_contexts', ['name'], unique=True)

    # Create terms table
    op.create_table(
        'terms',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('definition', sa.Text(), nullable=False),
        sa.Column('bounded_context_id', sa.Uuid(as_uuid=True), nullable=False),
        sa.Column('status', sa.String(50), nullable=False, server_default='active'),
        sa.Column('examples', sa.JSON(), nullable=True),
        sa.Column('usage_notes', sa.Text(), nullable=True),
        sa.Column('quality_score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('essential_for_onboarding', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('review_cycle_days', sa.Integer(), nullable=True),
        sa.Column('next_review_date', sa.Date(), nullable=True),
        sa.Column('view_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('search_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_by', sa.String(255), nullable=False),
        sa.Column('updated_by', sa.String(255), nullable=False),
        *_timestamps('created_at', 'updated_at'),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['bounded_context_id'], ['bounded_contexts.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('name', 'bounded_context_id', name='unique_term_per_context'),
    )
    op.create_index('ix_terms_name', 'terms', ['name'])
    op.create_index('ix_terms_bounded_context_id', 'terms', ['bounded_context_id'])
    op.create_index('ix_terms_status', 'terms', ['status'])
    op.create_index('ix_terms_essential_for_onboarding', 'terms', ['essential_for_onboarding'])
    op.create_index('ix_terms_next_review_date', 'terms', ['next_review_date'])
    op.create_index('ix_terms_deleted_at', 'terms', ['deleted_at'])

    # Create term_contexts table
    op.create_table(
        'term_contexts',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('term_id', sa.Uuid(as_uuid=True), nullable=False),
        sa.Column('context_id', sa.Uuid(as_uuid=True), nullable=False),
        sa.Column('definition', sa.Text(), nullable=False),
        sa.Column('examples', sa.JSON(), nullable=True),
        *_timestamps('created_at', 'updated_at'),
        sa.ForeignKeyConstraint(['term_id'], ['terms.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['context_id'], ['bounded_contexts.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('term_id', 'context_id', name='unique_term_context'),
    )
    op.create_index('ix_term_contexts_term_id', 'term_contexts', ['term_id'])
    op.create_index('ix_term_contexts_context_id', 'term_contexts', ['context_id'])

    # Create term_history table
    op.create_table(
        'term_history',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('term_id', sa.Uuid(as_uuid=True), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('previous_definition', sa.Text(), nullable=True),
        sa.Column('new_definition', sa.Text(), nullable=False),
        sa.Column('changed_fields', sa.JSON(), nullable=True),
        sa.Column('change_reason', sa.Text(), nullable=True),
        sa.Column('changed_by', sa.String(255), nullable=False),
        *_timestamps('changed_at'),
        sa.ForeignKeyConstraint(['term_id'], ['terms.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('term_id', 'version', name='unique_term_version'),
    )
    op.create_index('ix_term_history_term_id', 'term_history', ['term_id'])

    # Create term_relationships table
    op.create_table(
        'term_relationships',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('source_term_id', sa.Uuid(as_uuid=True), nullable=False),
        sa.Column('target_term_id', sa.Uuid(as_uuid=True), nullable=False),
        sa.Column('relationship_type', sa.String(50), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_by', sa.String(255), nullable=False),
        *_timestamps('created_at', 'updated_at'),
        sa.ForeignKeyConstraint(['source_term_id'], ['terms.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['target_term_id'], ['terms.id'], ondelete='CASCADE'),
        sa.UniqueConstraint(
            'source_term_id', 'target_term_id', 'relationship_type', name='unique_term_relationship'
        ),
        sa.CheckConstraint('source_term_id <> target_term_id', name='no_self_reference'),
    )
    op.create_index('ix_term_relationships_source_term_id', 'term_relationships', ['source_term_id'])
    op.create_index('ix_term_relationships_target_term_id', 'term_relationships', ['target_term_id'])
    op.create_index('ix_term_relationships_relationship_type', 'term_relationships', ['relationship_type'])

    # Create term_proposals table
    op.create_table(
        'term_proposals',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('definition', sa.Text(), nullable=False),
        sa.Column('bounded_context_id', sa.Uuid(as_uuid=True), nullable=False),
        sa.Column('proposed_by', sa.String(255), nullable=False),
        *_timestamps('proposed_at'),
        sa.Column('status', sa.String(50), nullable=False, server_default='pending'),
        sa.Column('approved_by', sa.String(255), nullable=True),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('term_id', sa.Uuid(as_uuid=True), nullable=True),
        *_timestamps('updated_at'),
        sa.ForeignKeyConstraint(['bounded_context_id'], ['bounded_contexts.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['term_id'], ['terms.id'], ondelete='SET NULL'),
    )
    op.create_index('ix_term_proposals_name', 'term_proposals', ['name'])
    op.create_index('ix_term_proposals_bounded_context_id', 'term_proposals', ['bounded_context_id'])
    op.create_index('ix_term_proposals_proposed_by', 'term_proposals', ['proposed_by'])
    op.create_index('ix_term_proposals_status', 'term_proposals', ['status'])

    # Create discussion_threads table
    op.create_table(
        'discussion_threads',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('term_id', sa.Uuid(as_uuid=True), nullable=True),
        sa.Column('proposal_id', sa.Uuid(as_uuid=True), nullable=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='open'),
        sa.Column('created_by', sa.String(255), nullable=False),
        *_timestamps('created_at', 'updated_at'),
        sa.ForeignKeyConstraint(['term_id'], ['terms.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['proposal_id'], ['term_proposals.id'], ondelete='CASCADE'),
        sa.CheckConstraint(
            '(term_id IS NOT NULL AND proposal_id IS NULL) OR '
            '(term_id IS NULL AND proposal_id IS NOT NULL)',
            name='thread_single_target'
        ),
    )
    op.create_index('ix_discussion_threads_term_id', 'discussion_threads', ['term_id'])
    op.create_index('ix_discussion_threads_proposal_id', 'discussion_threads', ['proposal_id'])
    op.create_index('ix_discussion_threads_status', 'discussion_threads', ['status'])

    # Create comments table
    op.create_table(
        'comments',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('thread_id', sa.Uuid(as_uuid=True), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('posted_by', sa.String(255), nullable=False),
        *_timestamps('posted_at'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['thread_id'], ['discussion_threads.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_comments_thread_id', 'comments', ['thread_id'])
    op.create_index('ix_comments_posted_by', 'comments', ['posted_by'])

    # Create reviews table
    op.create_table(
        'reviews',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('term_id', sa.Uuid(as_uuid=True), nullable=False),
        sa.Column('reviewed_by', sa.String(255), nullable=False),
        *_timestamps('reviewed_at'),
        sa.Column('status', sa.String(50), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['term_id'], ['terms.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_reviews_term_id', 'reviews', ['term_id'])
    op.create_index('ix_reviews_reviewed_by', 'reviews', ['reviewed_by'])

    # Create user_learning table
    op.create_table(
        'user_learning',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('user_id', sa.String(255), nullable=False),
        sa.Column('term_id', sa.Uuid(as_uuid=True), nullable=False),
        *_timestamps('learned_at'),
        sa.ForeignKeyConstraint(['term_id'], ['terms.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('user_id', 'term_id', name='unique_user_term_learning'),
    )
    op.create_index('ix_user_learning_user_id', 'user_learning', ['user_id'])
    op.create_index('ix_user_learning_term_id', 'user_learning', ['term_id'])

    # Create user_activity table
    op.create_table(
        'user_activity',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('user_id', sa.String(255), nullable=False),
        sa.Column('action', sa.String(100), nullable=False),
        sa.Column('resource_type', sa.String(50), nullable=True),
        sa.Column('resource_id', sa.String(64), nullable=True),
        sa.Column('details', sa.JSON(), nullable=True),
        *_timestamps('created_at'),
    )
    op.create_index('ix_user_activity_user_id', 'user_activity', ['user_id'])
    op.create_index('ix_user_activity_action', 'user_activity', ['action'])
    op.create_index('ix_user_activity_created_at', 'user_activity', ['created_at'])

    # Create code_analysis table
    op.create_table(
        'code_analysis',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('file_name', sa.String(255), nullable=False),
        sa.Column('uploaded_by', sa.String(255), nullable=False),
        *_timestamps('uploaded_at'),
        sa.Column('extracted_elements', sa.JSON(), nullable=False),
        sa.Column('match_rate', sa.Float(), nullable=False, server_default='0'),
    )
    op.create_index('ix_code_analysis_uploaded_by', 'code_analysis', ['uploaded_by'])

    # Create ai_analysis table
    op.create_table(
        'ai_analysis',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('term_id', sa.Uuid(as_uuid=True), nullable=True),
        sa.Column('proposal_id', sa.Uuid(as_uuid=True), nullable=True),
        sa.Column('analysis_type', sa.String(50), nullable=False),
        sa.Column('input_text', sa.Text(), nullable=False),
        sa.Column('output_text', sa.Text(), nullable=False),
        sa.Column('clarity_score', sa.Integer(), nullable=True),
        sa.Column('suggestions', sa.JSON(), nullable=True),
        sa.Column('similar_terms', sa.JSON(), nullable=True),
        sa.Column('model', sa.String(255), nullable=True),
        *_timestamps('created_at'),
        sa.ForeignKeyConstraint(['term_id'], ['terms.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['proposal_id'], ['term_proposals.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_ai_analysis_term_id', 'ai_analysis', ['term_id'])
    op.create_index('ix_ai_analysis_proposal_id', 'ai_analysis', ['proposal_id'])
    op.create_index('ix_ai_analysis_analysis_type', 'ai_analysis', ['analysis_type'])


def downgrade() -> None:
    op.drop_table('ai_analysis')
    op.drop_table('code_analysis')
    op.drop_table('user_activity')
    op.drop_table('user_learning')
    op.drop_table('reviews')
    op.drop_table('comments')
    op.drop_table('discussion_threads')
    op.drop_table('term_proposals')
    op.drop_table('term_relationships')
    op.drop_table('term_history')
    op.drop_table('term_contexts')
    op.drop_table('terms')
    op.drop_table('bounded_contexts')
