from fastapi import Request
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from app.config import Settings, settings


def _global_key(request: Request) -> str:
    return "global"


def create_rate_limiter(config: Settings = settings):
    """Create the HTTP rate limiter, or None when limiting is disabled"""
    if not config.enable_rate_limiting:
        return None
    key_func = get_remote_address if config.rate_limit_by_ip else _global_key
    return Limiter(
        key_func=key_func,
        default_limits=[f"{config.max_requests_per_minute}/minute"],
    )


def apply_rate_limiting(app, config: Settings = settings):
    """Attach the limiter and its 429 handler to the FastAPI app"""
    limiter = create_rate_limiter(config)
    if limiter is not None:
        app.state.limiter = limiter
        app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    return limiter
