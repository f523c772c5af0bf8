"""Create presentations table."""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "b2d3f4a5c6e7"
down_revision: Union[str, Sequence[str], None] = "a1c2e3f4b5d6"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create presentations table."""
    op.create_table(
        "presentations",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("refresh_interval", sa.Integer(), nullable=False, server_default=sa.text("5")),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_presentations_user_id"), "presentations", ["user_id"], unique=False)
    op.create_index(op.f("ix_presentations_created_at"), "presentations", ["created_at"], unique=False)


def downgrade() -> None:
    """Drop presentations table."""
    op.drop_index(op.f("ix_presentations_created_at"), table_name="presentations")
    op.drop_index(op.f("ix_presentations_user_id"), table_name="presentations")
    op.drop_table("presentations")
