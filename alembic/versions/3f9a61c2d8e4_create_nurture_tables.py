"""Create leads, conversations, messages, nurture_runs

Revision ID: 3f9a61c2d8e4
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f9a61c2d8e4'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table('leads',
        sa.Column('id', sa.Text(), nullable=False),
        sa.Column('site_id', sa.Text(), nullable=False),
        sa.Column('name', sa.Text(), nullable=True),
        sa.Column('email', sa.Text(), nullable=True),
        sa.Column('phone', sa.Text(), nullable=True),
        sa.Column('status', sa.Text(), nullable=False),
        sa.Column('assignee_id', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    # Candidate loader: WHERE site_id AND status IN (...) ORDER BY updated_at DESC
    op.create_index('ix_leads_site_status_updated', 'leads', ['site_id', 'status', 'updated_at'])

    op.create_table('conversations',
        sa.Column('id', sa.Text(), nullable=False),
        sa.Column('site_id', sa.Text(), nullable=False),
        sa.Column('lead_id', sa.Text(), nullable=True),
        sa.Column('channel', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.ForeignKeyConstraint(['lead_id'], ['leads.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_conversations_site_id', 'conversations', ['site_id'])

    op.create_table('messages',
        sa.Column('id', sa.Text(), nullable=False),
        sa.Column('conversation_id', sa.Text(), nullable=False),
        sa.Column('lead_id', sa.Text(), nullable=True),
        sa.Column('role', sa.Text(), nullable=False),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('custom_data', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.ForeignKeyConstraint(['conversation_id'], ['conversations.id']),
        sa.ForeignKeyConstraint(['lead_id'], ['leads.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    # Message resolver: WHERE lead_id ORDER BY created_at DESC LIMIT 1
    op.create_index('ix_messages_lead_created', 'messages', ['lead_id', 'created_at'])

    op.create_table('nurture_runs',
        sa.Column('id', sa.Text(), nullable=False),
        sa.Column('site_id', sa.Text(), nullable=False),
        sa.Column('status', sa.Text(), nullable=False),
        sa.Column('params', sa.JSON(), nullable=True),
        sa.Column('total_checked', sa.Integer(), nullable=True),
        sa.Column('considered', sa.Integer(), nullable=True),
        sa.Column('excluded_by_assignee', sa.Integer(), nullable=True),
        sa.Column('qualified_leads', sa.Integer(), nullable=True),
        sa.Column('follow_ups_started', sa.Integer(), nullable=True),
        sa.Column('stats', sa.JSON(), nullable=True),
        sa.Column('terminal', sa.JSON(), nullable=True),
        sa.Column('errors', sa.JSON(), nullable=True),
        sa.Column('threshold_date', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.Column('finished_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_nurture_runs_site_id', 'nurture_runs', ['site_id'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_nurture_runs_site_id', 'nurture_runs')
    op.drop_table('nurture_runs')
    op.drop_index('ix_messages_lead_created', 'messages')
    op.drop_table('messages')
    op.drop_index('ix_conversations_site_id', 'conversations')
    op.drop_table('conversations')
    op.drop_index('ix_leads_site_status_updated', 'leads')
    op.drop_table('leads')
