"""
Main entry point for the Operator Broker.

Builds the broker from configuration, starts it, and stops it on
SIGINT/SIGTERM.
"""

import asyncio
import logging
import signal
from functools import partial
from typing import Optional

from broker import OperatorBroker
from client import create_client
from config import Config, get_config
from controllers.registry import ControllerCatalog, get_catalog
from log import configure_logging

logger = logging.getLogger(__name__)


def build_broker(
    config: Config, catalog: Optional[ControllerCatalog] = None
) -> OperatorBroker:
    """
    Create a broker and populate its registry.

    Factories advertised through entry points are added to the catalog
    first, then the configured glob pattern is resolved against it.
    """
    catalog = catalog if catalog is not None else get_catalog()
    if config.broker.load_entry_points:
        found = catalog.load_entry_points(config.broker.entry_point_group)
        logger.info(
            f"Found {found} controller factories in "
            f"entry point group {config.broker.entry_point_group}"
        )

    broker = OperatorBroker(
        config.broker.name,
        client_factory=partial(create_client, config=config.cluster),
        catalog=catalog,
    )

    if config.broker.controllers_pattern:
        broker.load_controllers(config.broker.controllers_pattern)

    logger.info(f"Broker {broker.name} has {len(broker.registry)} controllers")
    return broker


async def run(
    config: Optional[Config] = None, catalog: Optional[ControllerCatalog] = None
) -> None:
    """Run the broker until a shutdown signal arrives."""
    config = config or get_config()
    broker = build_broker(config, catalog)
    shutdown = asyncio.Event()

    loop = asyncio.get_running_loop()

    def signal_handler():
        logger.info("Received shutdown signal")
        shutdown.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler)

    try:
        await broker.start()
        await shutdown.wait()
    finally:
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(sig)
        await broker.close()


def main():
    """Main entry point."""
    config = get_config()
    configure_logging(config.logging)

    try:
        asyncio.run(run(config))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")


if __name__ == "__main__":
    main()
