"""Main entry point for the transit JSON service."""

import asyncio
import logging
import sys

import aiohttp
from pydantic import ValidationError

from transit_enabler.adapters.config import AppConfig
from transit_enabler.adapters.provider_factory import create_provider
from transit_enabler.adapters.web import TransitWebAdapter
from transit_enabler.application.services import TransitService

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    stream=sys.stderr,
)

logger = logging.getLogger(__name__)


def load_config() -> AppConfig:
    """Read settings and apply TOML overrides, exiting on invalid configuration."""
    try:
        return AppConfig().load_config_file()
    except (ValidationError, ValueError, FileNotFoundError) as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)


async def main() -> None:
    """Main application entry point."""
    config = load_config()
    logging.getLogger().setLevel(config.log_level_value)
    logger.info(f"Starting with provider '{config.provider}'")

    # One aiohttp session per process, shared by the adapter's requests
    async with aiohttp.ClientSession() as session:
        provider = create_provider(config, session)
        service = TransitService(provider)
        web_adapter = TransitWebAdapter(service, config)

        try:
            await web_adapter.start()
        except KeyboardInterrupt:
            logger.info("Shutting down...")
            await web_adapter.stop()


def run() -> None:
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
