"""SQLAlchemy models for persistence layer (profile lineages and revisions)."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Classe de base pour tous les modèles SQLAlchemy."""

    metadata = MetaData()


class ProfileLineageORM(Base):
    """Tête de lignée: dernière version acceptée et indicateur de retrait."""

    __tablename__ = "profile_lineages"

    profile_id = Column(String(36), primary_key=True)
    latest_version = Column(String(64), nullable=False)
    retired = Column(Boolean, nullable=False, default=False)


class ProfileRevisionORM(Base):
    """Révision immuable d'un profil (représentation JSON persistée)."""

    __tablename__ = "profile_revisions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    profile_id = Column(String(36), ForeignKey("profile_lineages.profile_id"), nullable=False)
    version = Column(String(64), nullable=False)
    payload = Column(JSON, nullable=False)
    checksum = Column(String(64), nullable=False)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(UTC))

    __table_args__ = (
        UniqueConstraint("profile_id", "version", name="uq_profile_version"),
    )
