# sevadaan/core/rate_limiter.py

from loguru import logger
from slowapi import Limiter
from slowapi.util import get_remote_address

from sevadaan.core.config import get_settings


# ----------------------------------------------------------------
# CLIENT IP BEHIND PROXIES
# ----------------------------------------------------------------
def get_real_ip(request):
    """
    X-Forwarded-For (load balancers), then X-Real-IP (Cloudflare/Nginx),
    then the socket peer.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    return get_remote_address(request)


# ----------------------------------------------------------------
# LIMITER (Redis when configured, in-memory otherwise)
# ----------------------------------------------------------------
def build_limiter() -> Limiter:
    settings = get_settings()
    storage_uri = settings.REDIS_URL

    if storage_uri:
        try:
            logger.info("Initializing rate limiter with Redis storage")
            return Limiter(
                key_func=get_real_ip,
                storage_uri=storage_uri,
                strategy="fixed-window",
                storage_options={"socket_connect_timeout": 5, "retry_on_timeout": True},
                enabled=settings.RATE_LIMIT_ENABLED,
            )
        except Exception as e:
            logger.error(f"Failed to configure Redis rate limiting: {e}")

    logger.warning("REDIS_URL not set. Using in-memory rate limiting.")
    return Limiter(key_func=get_real_ip, enabled=settings.RATE_LIMIT_ENABLED)


limiter = build_limiter()

AUTH_LIMIT = "10/minute"
EMERGENCY_LIMIT = "20/hour"
UPLOAD_LIMIT = "20/hour"
