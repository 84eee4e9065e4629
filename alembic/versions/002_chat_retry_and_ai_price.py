"""Add transcript hashes for chat retries and the classifier price on update requests

Revision ID: 002_chat_retry_and_ai_price
Revises: 001_initial_schema
Create Date: 2026-10-26 10:00:00

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = '002_chat_retry_and_ai_price'
down_revision = '001_initial_schema'
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.add_column('project_intakes', sa.Column('transcript_hash', sa.String(length=64), nullable=True))
    op.create_index('ix_project_intakes_transcript_hash', 'project_intakes', ['transcript_hash'])

    op.add_column('update_requests', sa.Column('ai_price_cents', sa.Integer(), nullable=True))
    op.add_column('update_requests', sa.Column('transcript_hash', sa.String(length=64), nullable=True))
    op.create_index('ix_update_requests_transcript_hash', 'update_requests', ['transcript_hash'])


def downgrade() -> None:
    op.drop_index('ix_update_requests_transcript_hash', table_name='update_requests')
    op.drop_column('update_requests', 'transcript_hash')
    op.drop_column('update_requests', 'ai_price_cents')

    op.drop_index('ix_project_intakes_transcript_hash', table_name='project_intakes')
    op.drop_column('project_intakes', 'transcript_hash')
