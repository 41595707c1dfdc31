"""
Database helpers — ModelHelper and transient store over SQLAlchemy.

"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List, Mapping, Optional, Type

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from core.errors import PersistenceFailed
from core.models import M, Model, ModelHelper
from database.models import ModelRecord, TransientRecord

logger = logging.getLogger(__name__)


def _matches(model_id: str, data: Mapping[str, Any], filters: Mapping[str, Any]) -> bool:
    for key, expected in filters.items():
        actual = model_id if key == "model_id" else data.get(key)
        if actual != expected:
            return False
    return True


class SqlModelHelper(ModelHelper):
    """
    Stores one model type's data as JSON rows in ``model_records``.

    Filtering happens in Python so the helper works on any SQL dialect.
    """

    def __init__(self, model_type: Type[Model], session_factory: sessionmaker[Session]) -> None:
        self.model_type = model_type
        self._session_factory = session_factory

    def _rows(self, session: Session, model_type: Type[Model]) -> List[ModelRecord]:
        result = session.execute(
            select(ModelRecord).where(ModelRecord.model_type == model_type.model_type)
        )
        return list(result.scalars().all())

    def find_all(
        self,
        model_type: Type[M],
        filters: Optional[Mapping[str, Any]] = None,
    ) -> List[M]:
        filters = filters or {}
        try:
            with self._session_factory() as session:
                rows = self._rows(session, model_type)
        except SQLAlchemyError as exc:
            raise PersistenceFailed(f"find_all failed for {model_type.model_type}: {exc}") from exc
        return [
            model_type(model_id=row.model_id, data=row.data)
            for row in rows
            if _matches(row.model_id, row.data or {}, filters)
        ]

    def get_data(
        self,
        model: Optional[Model] = None,
        filters: Optional[Mapping[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        filters = filters or {}
        try:
            with self._session_factory() as session:
                if model is not None:
                    row = session.get(ModelRecord, (model.model_type, model.model_id))
                    candidates = [row] if row is not None else []
                else:
                    candidates = self._rows(session, self.model_type)
        except SQLAlchemyError as exc:
            raise PersistenceFailed(f"get_data failed: {exc}") from exc

        for row in candidates:
            if _matches(row.model_id, row.data or {}, filters):
                return dict(row.data or {})
        return None

    def save(self, model: Model, data: Mapping[str, Any]) -> bool:
        try:
            with self._session_factory() as session:
                row = session.get(ModelRecord, (model.model_type, model.model_id))
                if row is None:
                    session.add(
                        ModelRecord(
                            model_type=model.model_type,
                            model_id=model.model_id,
                            data=dict(data),
                        )
                    )
                else:
                    row.data = dict(data)
                session.commit()
        except SQLAlchemyError as exc:
            logger.error("save failed for %r: %s", model, exc)
            raise PersistenceFailed(f"save failed for {model!r}: {exc}") from exc
        return True


class SqlTransientStore:
    """Key/value store with per-entry expiry in the ``transients`` table."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._session_factory = session_factory
        self._clock = clock

    def set(self, name: str, value: Any, ttl_seconds: int) -> None:
        expires_at = self._clock() + ttl_seconds
        try:
            with self._session_factory() as session:
                row = session.get(TransientRecord, name)
                if row is None:
                    session.add(TransientRecord(name=name, value=value, expires_at=expires_at))
                else:
                    row.value = value
                    row.expires_at = expires_at
                session.commit()
        except SQLAlchemyError as exc:
            logger.error("transient set failed for %s: %s", name, exc)
            raise PersistenceFailed(f"transient set failed for {name}: {exc}") from exc

    def get(self, name: str) -> Any:
        try:
            with self._session_factory() as session:
                row = session.get(TransientRecord, name)
                if row is None or row.expires_at <= self._clock():
                    return None
                return row.value
        except SQLAlchemyError as exc:
            logger.error("transient get failed for %s: %s", name, exc)
            raise PersistenceFailed(f"transient get failed for {name}: {exc}") from exc

    def delete(self, name: str) -> None:
        try:
            with self._session_factory() as session:
                session.execute(delete(TransientRecord).where(TransientRecord.name == name))
                session.commit()
        except SQLAlchemyError as exc:
            logger.error("transient delete failed for %s: %s", name, exc)
            raise PersistenceFailed(f"transient delete failed for {name}: {exc}") from exc

    def purge_expired(self) -> int:
        """Delete expired entries; returns how many were removed."""
        try:
            with self._session_factory() as session:
                result = session.execute(
                    delete(TransientRecord).where(TransientRecord.expires_at <= self._clock())
                )
                session.commit()
                return result.rowcount or 0
        except SQLAlchemyError as exc:
            logger.error("transient purge failed: %s", exc)
            raise PersistenceFailed(f"transient purge failed: {exc}") from exc
