"""
SqlEnvironment — an Environment wired to the SQLAlchemy store.

Used by ``main.create_app`` and by the test-suite (with in-memory SQLite).
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Optional, Type

from sqlalchemy.orm import Session, sessionmaker

from config.settings import Settings, config
from core.environment import Environment
from core.models import Model, ModelHelper
from database.helpers import SqlModelHelper, SqlTransientStore
from endpoints.base import Endpoint
from endpoints.registry import EndpointRegistry

logger = logging.getLogger(__name__)


class SqlEnvironment(Environment):
    def __init__(
        self,
        session_factory: Optional[sessionmaker[Session]] = None,
        *,
        settings: Optional[Settings] = None,
        endpoints: Optional[EndpointRegistry] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if session_factory is None:
            from database.session import session_factory as default_factory

            session_factory = default_factory
        self._session_factory = session_factory
        self.settings = settings or config
        self.endpoints = endpoints if endpoints is not None else EndpointRegistry()
        self.transients = SqlTransientStore(session_factory, clock=clock)
        self._helpers: Dict[Type[Model], ModelHelper] = {}

    def get_helper_for_model(self, model_type: Type[Model]) -> ModelHelper:
        helper = self._helpers.get(model_type)
        if helper is None:
            helper = SqlModelHelper(model_type, self._session_factory)
            self._helpers[model_type] = helper
        return helper

    def get_base_rest_url(self) -> str:
        return self.settings.rest_url()

    def set_transient(self, name: str, value: Any, ttl_seconds: int) -> None:
        self.transients.set(name, value, ttl_seconds)

    def get_transient_value(self, name: str) -> Any:
        return self.transients.get(name)

    def delete_transient(self, name: str) -> None:
        self.transients.delete(name)

    def register_endpoint(self, endpoint: Endpoint) -> None:
        self.endpoints.register(endpoint)
