"""
Model / ModelHelper — persistence contract for domain objects.

A :class:`Model` never talks to a store directly.  It asks the active
:class:`~core.environment.Environment` for the :class:`ModelHelper` that
serves its class and delegates reads and writes to it.
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar

from core.environment import Environment, get_environment
from core.errors import PersistenceFailed

M = TypeVar("M", bound="Model")


class ModelHelper(ABC):
    """Handles interactions between one Model type and a persistent store."""

    @abstractmethod
    def find_all(
        self,
        model_type: Type[M],
        filters: Optional[Mapping[str, Any]] = None,
    ) -> List[M]:
        """
        Return every stored model of ``model_type`` whose data contains all
        of ``filters``.  Order is store-defined.
        """
        ...

    @abstractmethod
    def get_data(
        self,
        model: Optional["Model"] = None,
        filters: Optional[Mapping[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Return the stored data for ``model`` (or the first record matching
        ``filters`` when no model is given); ``None`` if nothing is stored.
        """
        ...

    @abstractmethod
    def save(self, model: "Model", data: Mapping[str, Any]) -> bool:
        """
        Persist ``data`` for ``model``.

        Returns ``False`` when the store rejected the write.  Unexpected
        store errors should be raised as :class:`PersistenceFailed`.
        """
        ...


class Model:
    """Base class for persisted domain objects."""

    model_type = "model"

    def __init__(
        self,
        model_id: Optional[str] = None,
        data: Optional[Mapping[str, Any]] = None,
        *,
        environment: Optional[Environment] = None,
    ) -> None:
        self.model_id = model_id or uuid.uuid4().hex
        self.data: Dict[str, Any] = dict(data or {})
        self._environment = environment

    def __repr__(self) -> str:
        return f"{type(self).__name__}(model_id={self.model_id!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Model):
            return NotImplemented
        return type(self) is type(other) and self.model_id == other.model_id

    def __hash__(self) -> int:
        return hash((type(self), self.model_id))

    @property
    def environment(self) -> Environment:
        if self._environment is not None:
            return self._environment
        return get_environment()

    def helper(self) -> ModelHelper:
        return self.environment.get_helper_for_model(type(self))

    def load(self) -> bool:
        """Refresh ``data`` from the store.  Returns False if nothing is stored."""
        stored = self.helper().get_data(self)
        if stored is None:
            return False
        self.data = dict(stored)
        return True

    def save(self) -> None:
        if not self.helper().save(self, dict(self.data)):
            raise PersistenceFailed(f"Store rejected write for {self!r}")


class User(Model):
    """Authenticated actor; only its identifier matters to the core."""

    model_type = "user"


class Site(Model):
    """Site a request targets; only its identifier matters to the core."""

    model_type = "site"
