from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import settings

# Shared by main (exception handler) and the endpoints it decorates.
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)

deletion_rate = f"{settings.deletion_requests_per_minute}/minute"
