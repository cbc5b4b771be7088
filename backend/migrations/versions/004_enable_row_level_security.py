"""Enable row level security on tenant tables and make audit_logs append-only

Every tenant table gets a policy restricting rows to the organization
published by the application through
``set_config('app.current_org_id', <org>, true)``. ``FORCE`` applies the
policy to the table owner as well. Without the setting,
``current_setting(..., true)`` is NULL and no row matches.

Revision ID: 004
Revises: 003
Create Date: 2026-10-19 13:00:00.000000

"""
from alembic import op

# revision identifiers, used by Alembic.
revision = '004'
down_revision = '003'
branch_labels = None
depends_on = None

TENANT_TABLES = ['customers', 'projects', 'quotes', 'contracts', 'handovers', 'audit_logs']

POLICY_EXPRESSION = "organization_id = NULLIF(current_setting('app.current_org_id', true), '')::uuid"


def upgrade():
    for table in TENANT_TABLES:
        op.execute(f'ALTER TABLE {table} ENABLE ROW LEVEL SECURITY')
        op.execute(f'ALTER TABLE {table} FORCE ROW LEVEL SECURITY')
        op.execute(f"""
            CREATE POLICY tenant_isolation_{table} ON {table}
            USING ({POLICY_EXPRESSION})
            WITH CHECK ({POLICY_EXPRESSION})
        """)

    # Append-only audit trail
    op.execute('REVOKE UPDATE, DELETE, TRUNCATE ON audit_logs FROM PUBLIC')
    op.execute("""
        CREATE OR REPLACE FUNCTION reject_audit_log_change()
        RETURNS TRIGGER AS $$
        BEGIN
          RAISE EXCEPTION 'audit_logs is append-only';
        END;
        $$ LANGUAGE plpgsql;
    """)
    op.execute("""
        CREATE TRIGGER audit_logs_append_only
        BEFORE UPDATE OR DELETE ON audit_logs
        FOR EACH ROW
        EXECUTE FUNCTION reject_audit_log_change();
    """)


def downgrade():
    op.execute('DROP TRIGGER IF EXISTS audit_logs_append_only ON audit_logs')
    op.execute('DROP FUNCTION IF EXISTS reject_audit_log_change()')

    for table in reversed(TENANT_TABLES):
        op.execute(f'DROP POLICY IF EXISTS tenant_isolation_{table} ON {table}')
        op.execute(f'ALTER TABLE {table} NO FORCE ROW LEVEL SECURITY')
        op.execute(f'ALTER TABLE {table} DISABLE ROW LEVEL SECURITY')
