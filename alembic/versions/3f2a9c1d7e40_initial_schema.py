"""Initial schema

Revision ID: 3f2a9c1d7e40
Revises:
Create Date: 2026-10-17 09:12:44.501218

"""
from typing import Sequence, Union

from alembic import op
from sqlalchemy.orm import Session

from myrefell.models import Base, seed_all_catalog_data


# revision identifiers, used by Alembic.
revision: str = '3f2a9c1d7e40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    # Baseline: every table as declared by the models at this revision
    bind = op.get_bind()
    Base.metadata.create_all(bind=bind)
    seed_all_catalog_data(Session(bind=bind))


def downgrade() -> None:
    """Downgrade schema."""
    Base.metadata.drop_all(bind=op.get_bind())
