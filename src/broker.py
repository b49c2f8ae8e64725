"""
Operator Broker - Controller registry and lifecycle state machine.

The broker owns an ordered registry of controllers and drives every one of
them, in registration order, through init, start and stop. It also owns
the shared cluster client and logger handed to controllers.
"""

from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Tuple

from client import create_client
from controllers.base import Controller, controller_name, is_controller
from controllers.discovery import resolve_pattern
from controllers.registry import ControllerCatalog, ControllerRegistry, get_catalog
from errors import ControllerLoadError, LifecycleError, RegistrationError
from log import BrokerLogger, create_logger

LoggerFactory = Callable[[str], BrokerLogger]
ClientFactory = Callable[[BrokerLogger], Awaitable[Any]]


class LifecycleState(Enum):
    """Broker lifecycle states."""

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    INITIALIZED = "initialized"
    STARTING = "starting"
    STARTED = "started"
    STOPPING = "stopping"
    STOPPED_BUT_INITIALIZED = "stopped_but_initialized"


IN_PROGRESS = (
    LifecycleState.INITIALIZING,
    LifecycleState.STARTING,
    LifecycleState.STOPPING,
)


class OperatorBroker:
    """
    Drives a set of controllers through a shared lifecycle.

    State machine::

        UNINITIALIZED --init--> INITIALIZED --start--> STARTED
        STARTED --stop--> STOPPED_BUT_INITIALIZED --start--> STARTED

    start() from UNINITIALIZED runs init() first. Phases are sequential and
    fail fast: the first controller to raise aborts the phase and the
    broker stays in the state it had before the phase began.
    """

    def __init__(
        self,
        name: str,
        logger_factory: LoggerFactory = create_logger,
        client_factory: ClientFactory = create_client,
        catalog: Optional[ControllerCatalog] = None,
    ):
        self.name = name
        self.base_logger = logger_factory(name)
        self.logger = self.base_logger.child(caller="broker")
        self.catalog = catalog if catalog is not None else get_catalog()
        self.registry = ControllerRegistry()
        self.state = LifecycleState.UNINITIALIZED

        self._client_factory = client_factory
        self._client: Any = None

    @property
    def initialized(self) -> bool:
        return self.state in (
            LifecycleState.INITIALIZED,
            LifecycleState.STARTING,
            LifecycleState.STARTED,
            LifecycleState.STOPPING,
            LifecycleState.STOPPED_BUT_INITIALIZED,
        )

    @property
    def started(self) -> bool:
        return self.state is LifecycleState.STARTED

    @property
    def controllers(self) -> Tuple[Controller, ...]:
        return self.registry.snapshot()

    def _error(self, err: Exception) -> Exception:
        self.logger.error(str(err))
        return err

    # Lifecycle

    async def init(self) -> None:
        """
        Create the cluster client and initialize every controller.

        Raises:
            LifecycleError: If the broker is not UNINITIALIZED
        """
        if self.state in IN_PROGRESS:
            raise self._error(LifecycleError(f"Broker is {self.state.value}"))
        if self.state is not LifecycleState.UNINITIALIZED:
            raise self._error(LifecycleError("Broker already initialized"))

        self.state = LifecycleState.INITIALIZING
        try:
            self.logger.info("Initializing broker")
            self._client = await self._client_factory(self.logger)
            self.logger.info("Initializing controllers")
            await self._run_phase("init")
        except BaseException:
            self.state = LifecycleState.UNINITIALIZED
            await self._release_client()
            raise

        self.state = LifecycleState.INITIALIZED
        self.logger.info("Controllers initialized")
        self.logger.info("Broker initialized")

    async def start(self) -> None:
        """
        Start every controller, initializing the broker first if needed.

        Raises:
            LifecycleError: If the broker is already started
        """
        if self.state is LifecycleState.STARTED:
            raise self._error(LifecycleError("Broker already started"))
        if self.state in IN_PROGRESS:
            raise self._error(LifecycleError(f"Broker is {self.state.value}"))

        if self.state is LifecycleState.UNINITIALIZED:
            await self.init()

        previous = self.state
        self.state = LifecycleState.STARTING
        try:
            self.logger.info("Starting broker")
            self.logger.info("Starting controllers")
            await self._run_phase("start")
        except BaseException:
            self.state = previous
            raise

        self.state = LifecycleState.STARTED
        self.logger.info("Controllers started")
        self.logger.info("Broker started")

    async def stop(self, pass_without_error: bool = False) -> None:
        """
        Stop every controller, in registration order.

        Args:
            pass_without_error: Return quietly instead of raising when the
                broker is not started

        Raises:
            LifecycleError: If the broker is not started and
                pass_without_error is False
        """
        if self.state is not LifecycleState.STARTED:
            if pass_without_error:
                return
            raise self._error(LifecycleError("Broker not started"))

        self.state = LifecycleState.STOPPING
        try:
            self.logger.info("Stopping broker")
            self.logger.info("Stopping controllers")
            await self._run_phase("stop")
        except BaseException:
            self.state = LifecycleState.STARTED
            raise

        self.state = LifecycleState.STOPPED_BUT_INITIALIZED
        self.logger.info("Controllers stopped")
        self.logger.info("Broker stopped")

    async def close(self) -> None:
        """
        Stop the broker if it is running and release the cluster client.

        The broker returns to UNINITIALIZED, so a later start() runs init()
        again and creates a fresh client.
        """
        if self.state in IN_PROGRESS:
            raise self._error(
                LifecycleError(f"Cannot close broker while {self.state.value}")
            )
        await self.stop(pass_without_error=True)
        await self._release_client()
        self.state = LifecycleState.UNINITIALIZED

    async def _release_client(self) -> None:
        client, self._client = self._client, None
        close = getattr(client, "close", None)
        if close is not None:
            await close()
            self.logger.info("Cluster client closed")

    async def _run_phase(self, phase: str) -> None:
        with self.registry.lock() as controllers:
            for ctrl in controllers:
                try:
                    await getattr(ctrl, phase)()
                except Exception as e:
                    self.logger.error(
                        f"Controller {controller_name(ctrl)} failed to {phase}: {e}",
                        exc_info=True,
                    )
                    raise

    # Registration

    def register(self, controller: Controller) -> Controller:
        """
        Append an already constructed controller to the registry.

        Raises:
            RegistrationError: If a lifecycle phase is running
        """
        self.registry.append(controller)
        return controller

    def load_controllers(self, pattern: str) -> int:
        """
        Load a controller for every path matching a glob pattern.

        Args:
            pattern: Shell-style glob, e.g. ``"controllers/*.yaml"``

        Returns:
            Number of paths loaded

        Raises:
            ControllerLoadError: On the first path that fails to load
        """
        self.logger.info(f"Loading controllers with glob {pattern}")

        paths = resolve_pattern(pattern)
        for path in paths:
            self.load_controller(path)
        return len(paths)

    def load_controller(self, path: str) -> Controller:
        """
        Instantiate the controller registered for path and append it.

        Args:
            path: A discovered path; resolved through the catalog

        Returns:
            The new controller instance

        Raises:
            ControllerLoadError: If no factory is registered for path, the
                factory raises, or it returns something that is not a
                controller
            RegistrationError: If a lifecycle phase is running
        """
        self.logger.info(f"Loading controller from {path}")

        if self.registry.locked:
            raise self._error(
                RegistrationError(
                    f"Cannot load controller from {path} while a lifecycle "
                    f"phase is running"
                )
            )

        factory = self.catalog.resolve(path)
        if factory is None:
            raise self._error(
                ControllerLoadError(f"Unable to load controller from {path}", path)
            )

        try:
            instance = factory(self)
        except Exception as e:
            err = ControllerLoadError(
                f"Unable to load controller from {path}: {e}", path
            )
            self.logger.error(str(err))
            raise err from e

        if not is_controller(instance):
            raise self._error(
                ControllerLoadError(
                    f"Factory for {path} did not return a controller "
                    f"(got {type(instance).__name__})",
                    path,
                )
            )

        self.register(instance)
        self.logger.info(
            f"Successfully loaded controller({controller_name(instance)}) from {path}"
        )
        return instance

    # Accessors

    def get_logger(self) -> BrokerLogger:
        return self.logger

    def get_client(self) -> Any:
        """
        Return the shared cluster client.

        Raises:
            LifecycleError: If init() has not created the client yet
        """
        if self._client is None:
            raise LifecycleError("Cluster client is not available before init()")
        return self._client
