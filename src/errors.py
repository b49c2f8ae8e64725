"""Exception types raised by the broker and its collaborators."""

from typing import Any, Optional


class BrokerError(Exception):
    """Base class for broker errors."""


class LifecycleError(BrokerError):
    """A lifecycle call was made in a state that does not allow it."""


class ControllerLoadError(BrokerError):
    """A controller could not be resolved or instantiated from a path."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class RegistrationError(BrokerError):
    """The controller registry was mutated while a phase was running."""


class ClusterAPIError(BrokerError):
    """The cluster API server answered with an error status."""

    def __init__(self, status: int, message: str, body: Any = None):
        super().__init__(f"Cluster API error {status}: {message}")
        self.status = status
        self.body = body
