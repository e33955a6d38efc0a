"""create_todos_table

Revision ID: 4f1c2a9d7e30
Revises:
Create Date: 2026-10-19 09:12:44.518203

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4f1c2a9d7e30'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    # Priority is a VARCHAR, not a database enum; the API validates the values
    op.create_table(
        'todos',
        sa.Column('id', sa.String(length=24), nullable=False),
        sa.Column('text', sa.String(length=500), nullable=False),
        sa.Column('completed', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('priority', sa.String(length=10), nullable=False, server_default='medium'),
        sa.Column('category', sa.String(length=50), nullable=True),
        sa.Column('due_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_modified', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_todos_completed', 'todos', ['completed'])
    op.create_index('ix_todos_priority', 'todos', ['priority'])
    op.create_index('ix_todos_created_at', 'todos', ['created_at'])
    op.create_index('ix_todos_last_modified', 'todos', ['last_modified'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_todos_last_modified', table_name='todos')
    op.drop_index('ix_todos_created_at', table_name='todos')
    op.drop_index('ix_todos_priority', table_name='todos')
    op.drop_index('ix_todos_completed', table_name='todos')
    op.drop_table('todos')
