"""create companies table

Revision ID: 0002
Revises: 0001
Create Date: 2024-03-09 16:40:03.552871

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0002'
down_revision: Union[str, Sequence[str], None] = '0001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Companies are independent of things; no foreign key between them."""
    op.create_table(
        'companies',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('description', sa.String(length=100), nullable=True),
        sa.Column('website', sa.String(length=50), nullable=True),
        sa.Column('logo', sa.String(length=50), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name', name='uq_companies_name'),
        if_not_exists=True,
    )
    op.create_index(op.f('ix_companies_created_at'), 'companies', ['created_at'], unique=False, if_not_exists=True)


def downgrade() -> None:
    op.drop_index(op.f('ix_companies_created_at'), table_name='companies', if_exists=True)
    op.drop_table('companies', if_exists=True)
