"""
Environment — the seam between portable core logic and a hosting platform.

A host subclasses :class:`Environment`, overriding the capabilities it can
provide (transient storage, model persistence, endpoint registration, …),
and installs one instance per process with :func:`bootstrap`.  Capabilities a
host does not override raise :class:`NotImplementedByHost` instead of
silently doing nothing.

Code that loads before the host has bootstrapped registers work with
:func:`add_bootstrap_callback`; queued callbacks run once, in registration
order, as soon as an environment is installed.
"""

from __future__ import annotations

import logging
import os
import threading
from typing import TYPE_CHECKING, Any, Callable, List, Optional, Type

from core.errors import AlreadyBootstrapped, NotBootstrapped, NotImplementedByHost

if TYPE_CHECKING:
    from core.models import Model, ModelHelper
    from endpoints.base import Endpoint

logger = logging.getLogger(__name__)

BootstrapCallback = Callable[["Environment"], Any]


class Environment:
    """
    Host-platform capabilities.

    Provide a default only where one makes logical sense; otherwise raise
    :class:`NotImplementedByHost` so missing wiring surfaces immediately.
    """

    # ── Persistence ─────────────────────────────────────────────────────

    def get_helper_for_model(self, model_type: Type["Model"]) -> "ModelHelper":
        """Return the persistence helper for ``model_type``."""
        raise NotImplementedByHost("get_helper_for_model")

    # ── Configuration ───────────────────────────────────────────────────

    def env_var(self, name: str) -> Optional[str]:
        """Value of a host environment variable, ``None`` when undefined."""
        return os.environ.get(name)

    def get_base_rest_url(self) -> str:
        """Externally reachable base URL for endpoints, ending with ``/``."""
        raise NotImplementedByHost("get_base_rest_url")

    # ── Transient storage ───────────────────────────────────────────────

    def set_transient(self, name: str, value: Any, ttl_seconds: int) -> None:
        raise NotImplementedByHost("set_transient")

    def get_transient_value(self, name: str) -> Any:
        """
        Return the stored value, or ``None`` if the key never existed or
        has expired.  The two cases are deliberately indistinguishable.
        """
        raise NotImplementedByHost("get_transient_value")

    def delete_transient(self, name: str) -> None:
        raise NotImplementedByHost("delete_transient")

    # ── Request routing ─────────────────────────────────────────────────

    def register_endpoint(self, endpoint: "Endpoint") -> None:
        """Make ``endpoint`` reachable through the host's transport."""
        raise NotImplementedByHost("register_endpoint")


class EnvironmentRuntime:
    """
    One-shot holder for the active :class:`Environment`.

    Installing the environment and draining the callback queue happen under
    one lock, so no ``get`` or ``add_bootstrap_callback`` call can observe a
    half-finished bootstrap.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._active: Optional[Environment] = None
        self._callbacks: List[BootstrapCallback] = []

    @property
    def is_bootstrapped(self) -> bool:
        return self._active is not None

    def bootstrap(self, environment: Environment) -> None:
        with self._lock:
            if self._active is not None:
                raise AlreadyBootstrapped(
                    f"bootstrap should only be called once; "
                    f"{type(self._active).__name__} is already active."
                )
            self._active = environment
            pending, self._callbacks = self._callbacks, []
            logger.info(
                "Environment bootstrapped: %s (%d deferred callbacks)",
                type(environment).__name__,
                len(pending),
            )
            for callback in pending:
                callback(environment)

    def get(self) -> Environment:
        active = self._active
        if active is None:
            raise NotBootstrapped("The environment has not been bootstrapped yet.")
        return active

    def add_bootstrap_callback(self, callback: BootstrapCallback) -> None:
        with self._lock:
            if self._active is None:
                self._callbacks.append(callback)
                return
            environment = self._active
        callback(environment)

    def reset(self) -> None:
        """Forget the active environment — only useful in test teardown."""
        with self._lock:
            self._active = None
            self._callbacks = []


_runtime = EnvironmentRuntime()


def bootstrap(environment: Environment) -> None:
    """Install ``environment`` as the process-wide environment."""
    _runtime.bootstrap(environment)


def get_environment() -> Environment:
    return _runtime.get()


def is_bootstrapped() -> bool:
    return _runtime.is_bootstrapped


def add_bootstrap_callback(callback: BootstrapCallback) -> None:
    """
    Run ``callback(environment)`` once an environment is installed.

    Runs immediately when bootstrap has already happened.
    """
    _runtime.add_bootstrap_callback(callback)


def reset_environment() -> None:
    _runtime.reset()
