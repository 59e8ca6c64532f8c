"""Registration of the ZookeeperCluster custom resource type."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, NoReturn

from kubernetes.client.exceptions import ApiException

from . import metrics
from .builders.crd import build_crd
from .constants import (
    COND_ESTABLISHED,
    COND_NAMES_ACCEPTED,
    CRD_NAME,
    REGISTRATION_POLL_INTERVAL_SECONDS,
    REGISTRATION_TIMEOUT_SECONDS,
)
from .errors import EstablishmentTimeout, NameConflict, PlatformUnreachable
from .models import RegistrationState

logger = logging.getLogger(__name__)


def _condition(conditions: list[dict[str, Any]], condition_type: str) -> dict[str, Any] | None:
    for cond in conditions:
        if cond.get("type") == condition_type:
            return cond
    return None


class RegistrationManager:
    """Makes sure the custom resource type exists and is established.

    Runs once, before any watch starts. The resulting state is exposed as
    ``state`` and returned from :meth:`ensure_registered`.
    """

    def __init__(
        self,
        client: Any,
        declaration: dict[str, Any] | None = None,
        interval: float = REGISTRATION_POLL_INTERVAL_SECONDS,
        timeout: float = REGISTRATION_TIMEOUT_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.client = client
        self.declaration = declaration or build_crd()
        self.name = self.declaration.get("metadata", {}).get("name", CRD_NAME)
        self.interval = interval
        self.timeout = timeout
        self._sleep = sleep
        self._clock = clock
        self._created = False
        self.state = RegistrationState.NOT_REGISTERED

    def _set_state(self, state: RegistrationState) -> None:
        self.state = state
        metrics.registration_state.set(1 if state is RegistrationState.ESTABLISHED else 0)
        logger.info(f"Custom resource type {self.name} registration state: {state.value}")

    def ensure_registered(self) -> RegistrationState:
        """Submit the declaration and wait until the platform establishes it.

        Returns:
            ``RegistrationState.ESTABLISHED``

        Raises:
            PlatformUnreachable: If the declaration could not be submitted
            NameConflict: If the platform rejected the type names
            EstablishmentTimeout: If establishment was not observed in time
        """
        self._set_state(RegistrationState.IN_FLIGHT)
        self._submit()

        try:
            conflict = self._poll()
        except Exception as e:
            self._fail(EstablishmentTimeout(f"Error waiting for {self.name} to be established", cause=e))

        if conflict is not None:
            self._fail(NameConflict(f"Name conflict for {self.name}: {conflict}"))
        elif self.state is not RegistrationState.ESTABLISHED:
            self._fail(
                EstablishmentTimeout(f"{self.name} was not established within {self.timeout:g}s")
            )
        return self.state

    def _submit(self) -> None:
        try:
            self.client.create_crd(self.declaration)
            self._created = True
            logger.info(f"Submitted custom resource definition {self.name}")
        except ApiException as e:
            if e.status == 409:
                logger.info(f"Custom resource definition {self.name} already exists")
                return
            self._set_state(RegistrationState.FAILED)
            raise PlatformUnreachable(f"Failed to submit {self.name}: {e.status} {e.reason}") from e
        except Exception as e:
            self._set_state(RegistrationState.FAILED)
            raise PlatformUnreachable(f"Failed to submit {self.name}: {e}") from e

    def _poll(self) -> str | None:
        """Poll status conditions until established, rejected or out of time.

        Returns:
            The NamesAccepted reason on conflict, otherwise None
        """
        deadline = self._clock() + self.timeout
        while True:
            conditions = self.client.read_crd_conditions(self.name)

            established = _condition(conditions, COND_ESTABLISHED)
            if established is not None and established.get("status") == "True":
                self._set_state(RegistrationState.ESTABLISHED)
                return None

            names_accepted = _condition(conditions, COND_NAMES_ACCEPTED)
            if names_accepted is not None and names_accepted.get("status") == "False":
                return names_accepted.get("reason") or names_accepted.get("message") or "NamesNotAccepted"

            if self._clock() >= deadline:
                return None
            self._sleep(self.interval)

    def _fail(self, error: Exception) -> NoReturn:
        """Roll back a declaration created by this manager and raise ``error``."""
        self._set_state(RegistrationState.FAILED)
        if self._created:
            try:
                self.client.delete_crd(self.name)
                logger.info(f"Rolled back custom resource definition {self.name}")
            except Exception as cleanup_error:
                logger.error(f"Failed to roll back {self.name}: {cleanup_error}")
                if isinstance(error, EstablishmentTimeout):
                    raise EstablishmentTimeout(
                        error.base_message, cause=error.cause, cleanup_error=cleanup_error
                    ) from error.cause
                raise error from cleanup_error
        raise error


def ensure_registered(
    client: Any,
    declaration: dict[str, Any] | None = None,
    interval: float = REGISTRATION_POLL_INTERVAL_SECONDS,
    timeout: float = REGISTRATION_TIMEOUT_SECONDS,
) -> RegistrationState:
    """Register the custom resource type and wait for establishment.

    Args:
        client: Platform client exposing create_crd, read_crd_conditions and delete_crd
        declaration: CRD body; defaults to the ZookeeperCluster definition
        interval: Seconds between status polls
        timeout: Seconds to wait for establishment

    Returns:
        ``RegistrationState.ESTABLISHED``
    """
    manager = RegistrationManager(client, declaration, interval=interval, timeout=timeout)
    return manager.ensure_registered()
