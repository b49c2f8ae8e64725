"""
Controller Base - Abstract interface for pluggable controllers.

Controllers are constructed with a reference to the broker and driven
through three lifecycle phases: init, start and stop.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable, Optional

if TYPE_CHECKING:
    from broker import OperatorBroker
    from client import ClusterClient
    from log import BrokerLogger

LIFECYCLE_METHODS = ("init", "start", "stop")


class Controller(ABC):
    """
    Abstract base class for controllers.

    The broker calls init() once, then start(), then stop(), awaiting each
    call before moving on to the next controller. A controller may call
    start() again after stop() without a second init().
    """

    def __init__(self, broker: "OperatorBroker"):
        self.broker = broker
        self._logger: Optional["BrokerLogger"] = None

    @property
    def name(self) -> str:
        """Identifier used in log records."""
        return type(self).__name__

    @property
    def client(self) -> "ClusterClient":
        """The broker's shared cluster client (available after init)."""
        return self.broker.get_client()

    @property
    def logger(self) -> "BrokerLogger":
        # Built on first use so subclasses can set up name first
        if self._logger is None:
            self._logger = self.broker.get_logger().child(caller=self.name)
        return self._logger

    @abstractmethod
    async def init(self) -> None:
        """One-time setup, e.g. registering watches with the client."""
        pass

    @abstractmethod
    async def start(self) -> None:
        """Begin doing work."""
        pass

    @abstractmethod
    async def stop(self) -> None:
        """Stop doing work. Must leave the controller restartable."""
        pass


# A factory receives the broker and returns a controller
ControllerFactory = Callable[["OperatorBroker"], Controller]


def is_controller(obj: Any) -> bool:
    """Check whether obj implements the controller lifecycle methods."""
    return all(callable(getattr(obj, method, None)) for method in LIFECYCLE_METHODS)


def controller_name(obj: Any) -> str:
    """Best-effort display name for a controller instance."""
    name = getattr(obj, "name", None)
    if isinstance(name, str) and name:
        return name
    return type(obj).__name__
