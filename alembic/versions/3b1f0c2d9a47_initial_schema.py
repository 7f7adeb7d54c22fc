"""Initial schema - users, properties, bookings, favorites, audit logs

Revision ID: 3b1f0c2d9a47
Revises: 
Create Date: 2026-10-19 10:12:44.203118

"""
from typing import Sequence, Union

from alembic import op


# revision identifiers, used by Alembic.
revision: str = '3b1f0c2d9a47'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema: create all tables from current models."""
    from havenstay.database import Base
    from havenstay import models  # noqa: F401 - register all models with Base.metadata

    bind = op.get_bind()
    Base.metadata.create_all(bind=bind)


def downgrade() -> None:
    """Downgrade schema: drop all tables (in reverse dependency order)."""
    from havenstay.database import Base
    from havenstay import models  # noqa: F401

    bind = op.get_bind()
    Base.metadata.drop_all(bind=bind)
