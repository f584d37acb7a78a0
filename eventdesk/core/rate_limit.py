from slowapi import Limiter
from slowapi.util import get_remote_address
from eventdesk.core.config import settings

# Shared by the app state and the route decorators
limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)
