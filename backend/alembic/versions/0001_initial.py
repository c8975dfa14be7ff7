"""initial forum schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates every table declared on the SQLAlchemy metadata: users and moderator
grants, the ban log, forum content, follows, messages, notifications,
reports, tags with their audit tables, reactions, badges and the wiki.
"""

# revision identifiers, used by Alembic.
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    from alembic import op

    from repositories.database import Base
    import repositories.db_models  # noqa: F401  registers the tables

    Base.metadata.create_all(bind=op.get_bind())


def downgrade() -> None:
    """Drop every forum table. Data is lost."""
    from alembic import op

    from repositories.database import Base
    import repositories.db_models  # noqa: F401

    Base.metadata.drop_all(bind=op.get_bind())
