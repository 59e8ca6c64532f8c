"""Exception hierarchy for the ZooKeeper Operator."""

from __future__ import annotations

from typing import Any


class OperatorError(Exception):
    """Base class for all operator errors."""


class RegistrationError(OperatorError):
    """Custom resource type could not be registered; fatal to startup."""


class NameConflict(RegistrationError):
    """The platform refused the custom resource type names."""


class PlatformUnreachable(RegistrationError):
    """The platform API could not be reached to submit the declaration."""


class EstablishmentTimeout(RegistrationError):
    """The custom resource type never became established.

    If the compensating delete also failed, ``cleanup_error`` holds that failure
    and both are part of the message.
    """

    def __init__(
        self,
        message: str,
        cause: BaseException | None = None,
        cleanup_error: BaseException | None = None,
    ) -> None:
        self.base_message = message
        self.cause = cause
        self.cleanup_error = cleanup_error
        full_message = message
        if cause is not None:
            full_message = f"{full_message}: {cause}"
        if cleanup_error is not None:
            full_message = f"{full_message} (cleanup failed: {cleanup_error})"
        super().__init__(full_message)


class ReconcileError(OperatorError):
    """Reconciliation of a single cluster failed."""

    def __init__(self, message: str, cluster: Any = None) -> None:
        super().__init__(message)
        self.cluster = cluster


class TranslationInvalid(ReconcileError):
    """The cluster specification cannot be translated into child resources."""


class ChildResourceError(ReconcileError):
    """An operation on a child resource failed."""

    operation = "apply"

    def __init__(
        self,
        kind: str,
        resource_name: str,
        namespace: str,
        cause: BaseException | None = None,
        cluster: Any = None,
    ) -> None:
        self.kind = kind
        self.resource_name = resource_name
        self.namespace = namespace
        self.cause = cause
        message = f"Failed to {self.operation} {kind} {namespace}/{resource_name}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message, cluster=cluster)


class ChildResourceCreateFailed(ChildResourceError):
    operation = "create"


class ChildResourceUpdateFailed(ChildResourceError):
    operation = "update"


class ChildResourceDeleteFailed(ChildResourceError):
    operation = "delete"


class WatchError(OperatorError):
    """The observation stream failed."""


class StreamBroken(WatchError):
    """The watch stream stopped and could not be re-established."""
