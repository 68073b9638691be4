# mypy: ignore-errors
"""
Migration Alembic pour créer les tables des profils de voix de marque.

`profile_lineages` porte la tête de chaque lignée (dernière version, retrait) et sert de cible au
check-and-set optimiste; `profile_revisions` conserve chaque révision immuable.
"""

from __future__ import annotations

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "20261017_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Crée les tables `profile_lineages` et `profile_revisions`."""
    op.create_table(
        "profile_lineages",
        sa.Column("profile_id", sa.String(length=36), primary_key=True),
        sa.Column("latest_version", sa.String(length=64), nullable=False),
        sa.Column("retired", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_table(
        "profile_revisions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "profile_id",
            sa.String(length=36),
            sa.ForeignKey("profile_lineages.profile_id"),
            nullable=False,
        ),
        sa.Column("version", sa.String(length=64), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("checksum", sa.String(length=64), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("profile_id", "version", name="uq_profile_version"),
    )


def downgrade() -> None:
    """Supprime les tables créées par `upgrade`."""
    op.drop_table("profile_revisions")
    op.drop_table("profile_lineages")
