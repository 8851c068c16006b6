"""create invocation audits table"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "invocation_audits",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("invocation_id", sa.String(length=64), nullable=False),
        sa.Column("capability", sa.String(length=50), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=True),
        sa.Column("response", sa.JSON(), nullable=True),
        sa.Column("error", sa.Text(), nullable=True),
        sa.Column("duration_ms", sa.Float(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index(
        "ix_invocation_audits_invocation_id", "invocation_audits", ["invocation_id"]
    )
    op.create_index(
        "ix_invocation_audits_capability", "invocation_audits", ["capability"]
    )


def downgrade() -> None:
    op.drop_index("ix_invocation_audits_capability", table_name="invocation_audits")
    op.drop_index("ix_invocation_audits_invocation_id", table_name="invocation_audits")
    op.drop_table("invocation_audits")
