from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import settings

# Keyed on client IP. Only public write endpoints are decorated.
limiter = Limiter(
    key_func=get_remote_address,
    enabled=settings.environment != "test",
)
