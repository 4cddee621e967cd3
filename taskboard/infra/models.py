from __future__ import annotations

from sqlalchemy import Column, DateTime, String, Text

from taskboard.domain.entities import utcnow

from .db import Base


class SnapshotModel(Base):
    __tablename__ = "snapshots"

    namespace = Column(String(64), primary_key=True)
    payload = Column(Text, nullable=False, default="[]")
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
