"""notes and note_locks

Revision ID: 3c1f9a27d4e8
Revises:
Create Date: 2026-10-16 09:12:41.530117

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from app.shared.clock import utcnow


# revision identifiers, used by Alembic.
revision: str = "3c1f9a27d4e8"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    notes = op.create_table(
        "notes",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column(
            "updated_at", sa.DateTime(), server_default=utcnow(), nullable=False
        ),
    )

    op.create_table(
        "note_locks",
        sa.Column(
            "note_id",
            sa.Integer(),
            sa.ForeignKey("notes.id", ondelete="CASCADE"),
            primary_key=True,
            autoincrement=False,
        ),
        sa.Column("locked_by", sa.String(length=64), nullable=False),
        sa.Column("locked_at", sa.DateTime(), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_note_locks_expires_at", "note_locks", ["expires_at"])

    op.bulk_insert(
        notes,
        [
            {"title": "Meeting notes", "content": "Discuss architecture"},
            {"title": "Call script", "content": "Intro, value prop, objections"},
            {"title": "To-do", "content": "1) Ship MVP 2) Sleep"},
        ],
    )


def downgrade() -> None:
    op.drop_index("ix_note_locks_expires_at", table_name="note_locks")
    op.drop_table("note_locks")
    op.drop_table("notes")
