"""
SQLAlchemy ORM models backing the reference SQL environment.

One generic table holds every model's data as JSON; a second holds
transient values with their expiry as a unix timestamp.
"""

from __future__ import annotations

import time

from sqlalchemy import JSON, Column, Float, Index, String
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


class ModelRecord(Base):
    __tablename__ = "model_records"

    model_type = Column(String(128), primary_key=True)
    model_id = Column(String(64), primary_key=True)
    data = Column(JSON, nullable=False, default=dict)
    updated_at = Column(Float, nullable=False, default=time.time, onupdate=time.time)


class TransientRecord(Base):
    __tablename__ = "transients"

    name = Column(String(255), primary_key=True)
    value = Column(JSON, nullable=True)
    expires_at = Column(Float, nullable=False)

    __table_args__ = (Index("idx_transients_expires", "expires_at"),)
