"""create_trust_pipeline_schema

Revision ID: 3f1c9a7d2b10
Revises:
Create Date: 2026-10-19 09:12:41.204117

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3f1c9a7d2b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()'))


def _ts(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(name, sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=nullable)


def upgrade() -> None:
    """Upgrade schema."""
    # Agent runtime tables read by the learning loop
    op.create_table(
        'organizations',
        _id(),
        sa.Column('name', sa.String(), nullable=False),
        _ts('created_at'),
    )
    op.create_table(
        'agent_runs',
        _id(),
        sa.Column('org_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('status', sa.String(), nullable=True),
        sa.Column('risk_level', sa.String(), nullable=True),
        sa.Column('refusal_reason', sa.Text(), nullable=True),
        sa.Column('hitl_required', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('jurisdiction_json', postgresql.JSONB(), nullable=True),
        sa.Column('started_at', sa.TIMESTAMP(timezone=True), nullable=True),
        _ts('created_at'),
    )
    op.create_index('ix_agent_runs_org_id', 'agent_runs', ['org_id'])
    op.create_index('ix_agent_runs_created_at', 'agent_runs', ['created_at'])
    op.create_table(
        'run_citations',
        _id(),
        sa.Column('run_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('agent_runs.id', ondelete='CASCADE'), nullable=True),
        sa.Column('org_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('url', sa.Text(), nullable=True),
        sa.Column('domain_ok', sa.Boolean(), nullable=True),
        sa.Column('translation_flag', sa.String(), nullable=True),
        _ts('created_at'),
    )
    op.create_index('ix_run_citations_run_id', 'run_citations', ['run_id'])
    op.create_index('ix_run_citations_created_at', 'run_citations', ['created_at'])
    op.create_table(
        'tool_telemetry',
        _id(),
        sa.Column('org_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('run_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('tool_name', sa.String(), nullable=True),
        sa.Column('latency_ms', sa.Integer(), nullable=True),
        sa.Column('success', sa.Boolean(), nullable=True),
        sa.Column('error_code', sa.String(), nullable=True),
        _ts('created_at'),
    )
    op.create_index('ix_tool_telemetry_created_at', 'tool_telemetry', ['created_at'])
    op.create_table(
        'hitl_queue',
        _id(),
        sa.Column('org_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('run_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('status', sa.String(), nullable=True),
        sa.Column('reviewer_comment', sa.Text(), nullable=True),
        _ts('created_at'),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=True),
    )
    op.create_index('ix_hitl_queue_created_at', 'hitl_queue', ['created_at'])

    # Ingestion
    op.create_table(
        'sources',
        _id(),
        sa.Column('org_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('jurisdiction_code', sa.String(), nullable=False),
        sa.Column('source_type', sa.String(), nullable=False),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('publisher', sa.String(), nullable=True),
        sa.Column('source_url', sa.Text(), nullable=False),
        sa.Column('binding_lang', sa.String(), nullable=True),
        sa.Column('consolidated', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('adopted_date', sa.Date(), nullable=True),
        sa.Column('effective_date', sa.Date(), nullable=True),
        sa.Column('version_label', sa.String(), nullable=True),
        sa.Column('language_note', sa.Text(), nullable=True),
        sa.Column('capture_sha256', sa.String(length=64), nullable=True, comment='SHA256 of the captured payload for change detection'),
        sa.Column('http_etag', sa.String(), nullable=True),
        sa.Column('last_modified', sa.String(), nullable=True),
        sa.Column('residency_zone', sa.String(), nullable=True),
        sa.Column('link_last_status', sa.String(), nullable=True),
        sa.Column('link_last_error', sa.Text(), nullable=True),
        sa.Column('link_last_checked', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('eli', sa.String(), nullable=True),
        sa.Column('ecli', sa.String(), nullable=True),
        sa.Column('court_rank', sa.String(), nullable=True),
        sa.Column('akoma_ntoso', postgresql.JSONB(), nullable=True),
        _ts('created_at'),
        _ts('updated_at', nullable=True),
        sa.UniqueConstraint('org_id', 'source_url', name='uq_sources_org_url'),
    )
    op.create_index('ix_sources_org_id', 'sources', ['org_id'])
    op.create_index('ix_sources_jurisdiction_code', 'sources', ['jurisdiction_code'])
    op.create_index('ix_sources_eli', 'sources', ['eli'])
    op.create_index('ix_sources_ecli', 'sources', ['ecli'])

    op.create_table(
        'documents',
        _id(),
        sa.Column('org_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('source_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('sources.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('bucket_id', sa.String(), nullable=False),
        sa.Column('storage_path', sa.Text(), nullable=False),
        sa.Column('mime_type', sa.String(), nullable=False),
        sa.Column('bytes', sa.Integer(), nullable=False),
        sa.Column('residency_zone', sa.String(), nullable=True),
        sa.Column('vector_store_file_id', sa.String(), nullable=True),
        sa.Column('vector_store_status', sa.String(), nullable=False, server_default='pending'),
        sa.Column('vector_store_synced_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('vector_store_error', sa.Text(), nullable=True),
        _ts('created_at'),
        sa.UniqueConstraint('org_id', 'bucket_id', 'storage_path', name='uq_documents_org_bucket_path'),
    )

    op.create_table(
        'authority_domains',
        _id(),
        sa.Column('host', sa.String(), nullable=False),
        sa.Column('jurisdiction_code', sa.String(), nullable=False),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('failure_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_success_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('last_failure_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.UniqueConstraint('host', 'jurisdiction_code', name='uq_authority_domains_host_jurisdiction'),
    )

    op.create_table(
        'ingestion_quarantine',
        _id(),
        sa.Column('org_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('adapter_id', sa.String(), nullable=True),
        sa.Column('source_url', sa.Text(), nullable=False),
        sa.Column('canonical_url', sa.Text(), nullable=True),
        sa.Column('reason', sa.String(), nullable=False),
        sa.Column('details', postgresql.JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column('status', sa.String(), nullable=False, server_default='pending'),
        _ts('created_at'),
        _ts('updated_at', nullable=True),
        sa.UniqueConstraint('org_id', 'source_url', 'reason', name='uq_quarantine_org_url_reason'),
    )
    op.create_index('ix_ingestion_quarantine_org_id', 'ingestion_quarantine', ['org_id'])

    op.create_table(
        'ingestion_runs',
        _id(),
        sa.Column('org_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('adapter_id', sa.String(), nullable=False),
        sa.Column('status', sa.String(), nullable=False, server_default='running'),
        sa.Column('inserted_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('skipped_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('failed_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('error_message', sa.Text(), nullable=True),
        _ts('started_at'),
        sa.Column('finished_at', sa.TIMESTAMP(timezone=True), nullable=True),
    )
    op.create_index('ix_ingestion_runs_org_id', 'ingestion_runs', ['org_id'])

    op.create_table(
        'case_treatments',
        _id(),
        sa.Column('org_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('source_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('sources.id', ondelete='CASCADE'), nullable=False),
        sa.Column('citing_source_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('sources.id', ondelete='CASCADE'), nullable=False),
        sa.Column('treatment', sa.String(), nullable=False),
        sa.Column('weight', sa.Float(), nullable=False),
        sa.Column('court_rank', sa.String(), nullable=True),
        sa.Column('decided_at', sa.Date(), nullable=True),
        _ts('created_at'),
        sa.UniqueConstraint('org_id', 'source_id', 'citing_source_id', name='uq_case_treatments_edge'),
    )

    # Learning loop
    op.create_table(
        'learning_signals',
        _id(),
        sa.Column('org_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('run_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('source', sa.String(), nullable=False),
        sa.Column('kind', sa.String(), nullable=True),
        sa.Column('payload', postgresql.JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
        _ts('created_at'),
    )
    op.create_index('ix_learning_signals_org_id', 'learning_signals', ['org_id'])

    op.create_table(
        'learning_metrics',
        _id(),
        sa.Column('org_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('metric', sa.String(), nullable=False),
        sa.Column('value', sa.Float(), nullable=False),
        sa.Column('window', sa.String(), nullable=False),
        sa.Column('dims', postgresql.JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
        _ts('computed_at'),
    )
    op.create_index('ix_learning_metrics_org_id', 'learning_metrics', ['org_id'])
    op.create_index('ix_learning_metrics_metric', 'learning_metrics', ['metric'])
    op.create_index('ix_learning_metrics_computed_at', 'learning_metrics', ['computed_at'])

    op.create_table(
        'agent_policy_versions',
        _id(),
        sa.Column('org_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('status', sa.String(), nullable=False, server_default='draft'),
        sa.Column('change_set', postgresql.JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('approved_by', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('approved_at', sa.TIMESTAMP(timezone=True), nullable=True),
        _ts('created_at'),
        _ts('updated_at', nullable=True),
        sa.UniqueConstraint('org_id', 'version', name='uq_policy_versions_org_version'),
    )
    op.create_index('ix_agent_policy_versions_org_id', 'agent_policy_versions', ['org_id'])

    op.create_table(
        'agent_learning_jobs',
        _id(),
        sa.Column('org_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('status', sa.String(), nullable=False, server_default='pending'),
        sa.Column('payload', postgresql.JSONB(), nullable=True),
        sa.Column('policy_version_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('agent_policy_versions.id', ondelete='SET NULL'), nullable=True),
        sa.Column('error', sa.Text(), nullable=True),
        _ts('created_at'),
        _ts('updated_at', nullable=True),
        sa.Column('completed_at', sa.TIMESTAMP(timezone=True), nullable=True),
    )
    op.create_index('ix_agent_learning_jobs_org_id', 'agent_learning_jobs', ['org_id'])
    op.create_index('ix_agent_learning_jobs_status', 'agent_learning_jobs', ['status'])

    op.create_table(
        'agent_synonyms',
        _id(),
        sa.Column('jurisdiction', sa.String(), nullable=False),
        sa.Column('term', sa.String(), nullable=False),
        sa.Column('expansions', postgresql.JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        _ts('updated_at', nullable=True),
        sa.UniqueConstraint('jurisdiction', 'term', name='uq_agent_synonyms_jurisdiction_term'),
    )

    op.create_table(
        'agent_task_queue',
        _id(),
        sa.Column('org_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('payload', postgresql.JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column('priority', sa.Integer(), nullable=False, server_default='5'),
        sa.Column('status', sa.String(), nullable=False, server_default='scheduled'),
        sa.Column('scheduled_at', sa.TIMESTAMP(timezone=True), nullable=False),
        _ts('created_at'),
    )
    op.create_index('ix_agent_task_queue_org_id', 'agent_task_queue', ['org_id'])

    op.create_table(
        'agent_learning_reports',
        _id(),
        sa.Column('org_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('kind', sa.String(), nullable=False),
        sa.Column('report_date', sa.Date(), nullable=False),
        sa.Column('payload', postgresql.JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
        _ts('created_at'),
        sa.UniqueConstraint('org_id', 'kind', 'report_date', name='uq_learning_reports_org_kind_date'),
    )


def downgrade() -> None:
    """Downgrade schema."""
    for table in (
        'agent_learning_reports',
        'agent_task_queue',
        'agent_synonyms',
        'agent_learning_jobs',
        'agent_policy_versions',
        'learning_metrics',
        'learning_signals',
        'case_treatments',
        'ingestion_runs',
        'ingestion_quarantine',
        'authority_domains',
        'documents',
        'sources',
        'hitl_queue',
        'tool_telemetry',
        'run_citations',
        'agent_runs',
        'organizations',
    ):
        op.drop_table(table)
