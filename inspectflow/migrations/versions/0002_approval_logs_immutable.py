"""Make approval_logs rows immutable at the database level

Revision ID: 0002
Revises: 0001
Create Date: 2026-09-21

Rows may still be removed by the inspection delete, which clears a draft's
history together with the draft itself.
"""
from typing import Sequence, Union

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0002"
down_revision: Union[str, Sequence[str], None] = "0001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE OR REPLACE FUNCTION prevent_approval_log_update()
        RETURNS TRIGGER AS $trigger$
        BEGIN
            RAISE EXCEPTION 'Approval logs are immutable and cannot be updated. Record ID: %', OLD.id;
        END;
        $trigger$ LANGUAGE plpgsql;
    """)

    op.execute("""
        CREATE TRIGGER approval_logs_prevent_update
        BEFORE UPDATE ON approval_logs
        FOR EACH ROW
        EXECUTE FUNCTION prevent_approval_log_update();
    """)


def downgrade() -> None:
    op.execute("DROP TRIGGER IF EXISTS approval_logs_prevent_update ON approval_logs;")
    op.execute("DROP FUNCTION IF EXISTS prevent_approval_log_update();")
