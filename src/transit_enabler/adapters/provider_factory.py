"""Builds the one network provider selected by configuration."""

import logging
from typing import TYPE_CHECKING

from transit_enabler.adapters.abstract_network_provider import AbstractNetworkProvider
from transit_enabler.adapters.config import AppConfig
from transit_enabler.adapters.hafas_api import HafasProvider
from transit_enabler.adapters.transport_rest import TransportRestProvider
from transit_enabler.domain.exceptions import PreconditionError
from transit_enabler.domain.response_triage import ResponseTriage

if TYPE_CHECKING:
    from aiohttp import ClientSession

logger = logging.getLogger(__name__)

TRANSPORT_REST_NETWORKS = ("db", "vbb")


def create_provider(
    config: AppConfig, session: "ClientSession | None" = None
) -> AbstractNetworkProvider:
    """Create the adapter named by ``config.provider``.

    Raises:
        PreconditionError: If the provider name is unknown.
    """
    name = config.provider
    if name in TRANSPORT_REST_NETWORKS:
        logger.info(f"Using transport.rest provider for network {name}")
        return TransportRestProvider(
            network=name,
            session=session,
            base_url=config.api_base_url,
            api_key=config.api_key,
            user_agent=config.user_agent,
            timeout_seconds=config.request_timeout_seconds,
            min_delay_seconds=config.min_request_delay_seconds,
            max_trips=config.default_max_trips,
            triage=ResponseTriage(config.get_triage_markers()),
        )
    if name == "hafas":
        logger.info(f"Using HAFAS provider with profile {config.hafas_profile}")
        return HafasProvider(
            profile=config.hafas_profile,
            session=session,
            user_agent=config.user_agent,
            max_trips=config.default_max_trips,
        )
    raise PreconditionError(f"Unknown provider: {name}")
