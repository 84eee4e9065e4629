"""Initial schema: clients, leads, project intakes, update requests, allowances, events

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None

FIT_STATUS = ('good', 'borderline', 'not_fit')


def upgrade():
    op.create_table(
        'clients',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('business_name', sa.String(), nullable=True),
        sa.Column('website_url', sa.String(), nullable=True),
        sa.Column('pipeline_stage', sa.Enum(
            'lead', 'qualified', 'proposal', 'build', 'launched', 'care_plan', 'lost',
            name='pipeline_stage',
        ), nullable=False),
        sa.Column('plan_type', sa.Enum('build_only', 'care_plan', name='plan_type'), nullable=False),
        sa.Column('monthly_fee_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('setup_fee_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('monthly_included_minutes', sa.Integer(), nullable=False, server_default='30'),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('source_submission_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('source_submission_type', sa.String(length=20), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_clients_email', 'clients', ['email'], unique=True)
    op.create_index('ix_clients_pipeline_stage', 'clients', ['pipeline_stage'])

    op.create_table(
        'leads',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('source', sa.Enum('quote', 'checkup', 'contact', 'ai_intake', name='lead_source'), nullable=False),
        sa.Column('page_count', sa.Integer(), nullable=True),
        sa.Column('content_readiness', sa.String(), nullable=True),
        sa.Column('content_shaping', sa.Boolean(), nullable=True),
        sa.Column('rush', sa.Boolean(), nullable=True),
        sa.Column('timeline', sa.String(), nullable=True),
        sa.Column('budget_range', sa.String(), nullable=True),
        sa.Column('business_name', sa.String(), nullable=True),
        sa.Column('website_url', sa.String(), nullable=True),
        sa.Column('project_description', sa.Text(), nullable=True),
        sa.Column('goals', sa.Text(), nullable=True),
        sa.Column('wish', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('special_needs', sa.Text(), nullable=True),
        sa.Column('tech_comfort', sa.String(), nullable=True),
        sa.Column('features', sa.JSON(), nullable=True),
        sa.Column('suggested_tier', sa.String(), nullable=True),
        sa.Column('discount_offered', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('discount_amount', sa.Integer(), nullable=True),
        sa.Column('estimated_price', sa.Integer(), nullable=True),
        sa.Column('fit_status', sa.Enum(*FIT_STATUS, name='fit_status'), nullable=False),
        sa.Column('status', sa.Enum(
            'new', 'reviewed', 'contacted', 'qualified', 'converted', 'not_fit',
            name='lead_status',
        ), nullable=False),
        sa.Column('converted_to_client_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('converted_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['converted_to_client_id'], ['clients.id']),
        sa.CheckConstraint(
            "(status = 'converted') = (converted_to_client_id IS NOT NULL)",
            name='ck_leads_converted_linked',
        ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_leads_email', 'leads', ['email'])
    op.create_index('ix_leads_status', 'leads', ['status'])

    op.create_table(
        'project_intakes',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('lead_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('client_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('business_name', sa.String(), nullable=True),
        sa.Column('website_url', sa.String(), nullable=True),
        sa.Column('project_description', sa.Text(), nullable=True),
        sa.Column('goals', sa.Text(), nullable=True),
        sa.Column('pages_estimate', sa.Integer(), nullable=True),
        sa.Column('content_readiness', sa.String(), nullable=True),
        sa.Column('timeline', sa.String(), nullable=True),
        sa.Column('budget_range', sa.String(), nullable=True),
        sa.Column('design_examples', sa.Text(), nullable=True),
        sa.Column('special_needs', sa.Text(), nullable=True),
        sa.Column('tech_comfort', sa.String(), nullable=True),
        sa.Column('vibe', sa.Text(), nullable=True),
        sa.Column('inspiration_sites', sa.Text(), nullable=True),
        sa.Column('color_preferences', sa.Text(), nullable=True),
        sa.Column('page_details', sa.Text(), nullable=True),
        sa.Column('build_prompt', sa.Text(), nullable=True),
        sa.Column('fit_status', postgresql.ENUM(*FIT_STATUS, name='fit_status', create_type=False), nullable=False),
        sa.Column('suggested_tier', sa.String(), nullable=True),
        sa.Column('kanban_stage', sa.Enum(
            'new', 'qualified', 'needs_content', 'ready_to_build', 'in_build', 'waiting_on_client', 'done',
            name='kanban_stage',
        ), nullable=False),
        sa.Column('raw_summary', sa.Text(), nullable=True),
        sa.Column('raw_conversation', sa.JSON(), nullable=False),
        sa.Column('discount_offered', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('discount_amount', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['lead_id'], ['leads.id']),
        sa.ForeignKeyConstraint(['client_id'], ['clients.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_project_intakes_lead_id', 'project_intakes', ['lead_id'])
    op.create_index('ix_project_intakes_client_id', 'project_intakes', ['client_id'])
    op.create_index('ix_project_intakes_email', 'project_intakes', ['email'])
    op.create_index('ix_project_intakes_kanban_stage', 'project_intakes', ['kanban_stage'])

    op.create_table(
        'update_requests',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('client_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('size_tier', sa.Enum('tiny', 'small', 'medium', 'large', name='size_tier'), nullable=False),
        sa.Column('quoted_price_cents', sa.Integer(), nullable=True),
        sa.Column('status', sa.Enum(
            'new', 'in_progress', 'waiting_on_client', 'done', 'cancelled',
            name='request_status',
        ), nullable=False),
        sa.Column('priority', sa.Enum('low', 'normal', 'high', name='request_priority'), nullable=False),
        sa.Column('attachments', sa.JSON(), nullable=False),
        sa.Column('internal_notes', sa.Text(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['client_id'], ['clients.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_update_requests_client_id', 'update_requests', ['client_id'])
    op.create_index('ix_update_requests_status', 'update_requests', ['status'])

    op.create_table(
        'request_allowances',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('client_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('month', sa.Date(), nullable=False),
        sa.Column('included_requests', sa.Integer(), nullable=False, server_default='2'),
        sa.Column('used_requests', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['client_id'], ['clients.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('client_id', 'month', name='uq_request_allowances_client_month'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_request_allowances_client_id', 'request_allowances', ['client_id'])

    op.create_table(
        'pipeline_events',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('type', sa.Enum(
            'lead_created', 'intake_created', 'lead_converted', 'stage_changed',
            'request_created', 'request_status_changed',
            name='event_type',
        ), nullable=False),
        sa.Column('entity_type', sa.String(length=30), nullable=False),
        sa.Column('entity_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('payload', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_pipeline_events_id', 'pipeline_events', ['id'])
    op.create_index('ix_pipeline_events_type', 'pipeline_events', ['type'])
    op.create_index('ix_pipeline_events_entity_id', 'pipeline_events', ['entity_id'])


def downgrade():
    op.drop_table('pipeline_events')
    op.drop_table('request_allowances')
    op.drop_table('update_requests')
    op.drop_table('project_intakes')
    op.drop_table('leads')
    op.drop_table('clients')

    bind = op.get_bind()
    for enum_name in (
        'event_type', 'request_priority', 'request_status', 'size_tier', 'kanban_stage',
        'lead_status', 'fit_status', 'lead_source', 'plan_type', 'pipeline_stage',
    ):
        sa.Enum(name=enum_name).drop(bind, checkfirst=True)
