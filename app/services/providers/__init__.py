"""
Provider gateways for the supported email-marketing services.
"""

import httpx

from app.config import Settings
from app.services.providers.base import AuthenticationError, ProviderError, ProviderGateway
from app.services.providers.getresponse import GetResponseGateway
from app.services.providers.magic_link import MagicLinkGateway
from app.services.providers.sendpulse import SendPulseGateway
from app.services.providers.sendx import SendXGateway


def build_gateways(
    settings: Settings, transport: httpx.AsyncBaseTransport | None = None
) -> dict[str, ProviderGateway]:
    """Create one gateway per provider key."""
    urls = settings.get_provider_base_urls()
    timeout = settings.PROVIDER_REQUEST_TIMEOUT
    return {
        "sendx": SendXGateway(urls["sendx"], timeout=timeout, transport=transport),
        "sendpulse": SendPulseGateway(
            urls["sendpulse"],
            timeout=timeout,
            transport=transport,
            token_expiry_buffer_seconds=settings.SENDPULSE_TOKEN_EXPIRY_BUFFER_SECONDS,
        ),
        "getresponse": GetResponseGateway(urls["getresponse"], timeout=timeout, transport=transport),
        "magic_link": MagicLinkGateway(urls["magic_link"], timeout=timeout, transport=transport),
    }


__all__ = [
    "AuthenticationError",
    "ProviderError",
    "ProviderGateway",
    "build_gateways",
]
