"""HTTP service adapter."""

from transit_enabler.adapters.web.context_codec import decode_context, decode_page, encode_context
from transit_enabler.adapters.web.rate_limit_middleware import RateLimitMiddleware
from transit_enabler.adapters.web.service_app import TransitWebAdapter, create_app

__all__ = [
    "RateLimitMiddleware",
    "TransitWebAdapter",
    "create_app",
    "decode_context",
    "decode_page",
    "encode_context",
]
