"""Create customers, projects, quotes, contracts and handovers tables

Revision ID: 003
Revises: 002
Create Date: 2026-10-19 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '003'
down_revision = '002'
branch_labels = None
depends_on = None

RESOURCE_TABLES = ['customers', 'projects', 'quotes', 'contracts', 'handovers']


def _tenant_columns():
    """id, organization_id, created_at and updated_at shared by every resource table."""
    return [
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('organization_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='RESTRICT'),
    ]


def upgrade():
    op.create_table(
        'customers',
        *_tenant_columns(),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('email', sa.Text(), nullable=True),
        sa.Column('phone', sa.Text(), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('deleted_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.UniqueConstraint('organization_id', 'email', name='uq_customers_org_email'),
    )

    op.create_table(
        'projects',
        *_tenant_columns(),
        sa.Column('customer_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('status', sa.Text(), server_default='NEW', nullable=False),
        sa.Column('cancel_reason', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id'], ondelete='RESTRICT'),
        sa.CheckConstraint(
            "status IN ('NEW', 'QUOTED', 'CONTRACTED', 'INSTALLED', 'COMPLETED', 'CANCELLED')",
            name='ck_projects_status',
        ),
    )

    op.create_table(
        'quotes',
        *_tenant_columns(),
        sa.Column('project_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('customer_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('title', sa.Text(), nullable=True),
        sa.Column('status', sa.Text(), server_default='draft', nullable=False),
        sa.Column('payload', postgresql.JSONB(astext_type=sa.Text()), server_default=sa.text("'{}'::jsonb"), nullable=False),
        sa.Column('total_price', sa.Numeric(12, 2), nullable=True),
        sa.Column('version', sa.Integer(), server_default='1', nullable=False),
        sa.Column('parent_quote_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('superseded', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('approved_by', sa.Text(), nullable=True),
        sa.Column('approved_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['parent_quote_id'], ['quotes.id'], ondelete='SET NULL'),
        sa.UniqueConstraint('parent_quote_id', name='uq_quotes_parent_quote_id'),
        sa.CheckConstraint(
            "status IN ('draft', 'pending_approval', 'approved', 'sent', 'accepted', 'rejected')",
            name='ck_quotes_status',
        ),
        sa.CheckConstraint('version >= 1', name='ck_quotes_version'),
    )

    op.create_table(
        'contracts',
        *_tenant_columns(),
        sa.Column('project_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('quote_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('contract_number', sa.Text(), nullable=False),
        sa.Column('status', sa.Text(), server_default='DRAFT', nullable=False),
        sa.Column('payment_terms', postgresql.JSONB(astext_type=sa.Text()), server_default=sa.text("'[]'::jsonb"), nullable=False),
        sa.Column('warranty_terms', sa.Text(), nullable=True),
        sa.Column('construction_days', sa.Integer(), nullable=True),
        sa.Column('signed_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('signed_by', sa.Text(), nullable=True),
        sa.Column('cancel_reason', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['quote_id'], ['quotes.id'], ondelete='RESTRICT'),
        sa.UniqueConstraint('organization_id', 'contract_number', name='uq_contracts_org_number'),
        sa.CheckConstraint(
            "status IN ('DRAFT', 'SIGNED', 'INSTALLING', 'HANDOVER', 'COMPLETED', 'CANCELLED')",
            name='ck_contracts_status',
        ),
    )

    op.create_table(
        'handovers',
        *_tenant_columns(),
        sa.Column('contract_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('project_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('handover_type', sa.Text(), nullable=False),
        sa.Column('handover_date', sa.Date(), nullable=True),
        sa.Column('checklist', postgresql.JSONB(astext_type=sa.Text()), server_default=sa.text("'[]'::jsonb"), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('status', sa.Text(), server_default='DRAFT', nullable=False),
        sa.Column('signed_by', sa.Text(), nullable=True),
        sa.Column('signed_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('completed_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['contract_id'], ['contracts.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id'], ondelete='RESTRICT'),
        sa.CheckConstraint(
            "handover_type IN ('INSTALLATION', 'COMMISSIONING', 'FINAL')",
            name='ck_handovers_type',
        ),
        sa.CheckConstraint(
            "status IN ('DRAFT', 'SIGNED', 'COMPLETED', 'CANCELLED')",
            name='ck_handovers_status',
        ),
    )

    # Indexes matching the list ordering (created_at DESC) and status filters
    for table in RESOURCE_TABLES:
        op.create_index(f'ix_{table}_organization_id', table, ['organization_id'])
        op.create_index(f'ix_{table}_org_created_at', table, ['organization_id', sa.text('created_at DESC')])
    for table in ['projects', 'quotes', 'contracts', 'handovers']:
        op.create_index(f'ix_{table}_org_status', table, ['organization_id', 'status'])

    op.create_index('ix_projects_customer_id', 'projects', ['customer_id'])
    op.create_index('ix_quotes_project_id', 'quotes', ['project_id'])
    op.create_index('ix_quotes_customer_id', 'quotes', ['customer_id'])
    op.create_index('ix_contracts_project_id', 'contracts', ['project_id'])
    op.create_index('ix_contracts_quote_id', 'contracts', ['quote_id'])
    op.create_index('ix_handovers_contract_id', 'handovers', ['contract_id'])
    op.create_index('ix_handovers_project_id', 'handovers', ['project_id'])

    for table in RESOURCE_TABLES:
        op.execute(f"""
            CREATE TRIGGER update_{table}_updated_at
            BEFORE UPDATE ON {table}
            FOR EACH ROW
            EXECUTE FUNCTION update_updated_at_column();
        """)


def downgrade():
    for table in reversed(RESOURCE_TABLES):
        op.execute(f'DROP TRIGGER IF EXISTS update_{table}_updated_at ON {table}')
        op.drop_table(table)
