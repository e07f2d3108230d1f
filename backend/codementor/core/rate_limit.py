from slowapi import Limiter
from slowapi.util import get_remote_address


# Shared limiter; attached to app.state in app.py
limiter = Limiter(key_func=get_remote_address)

RATE_LIMIT_ANALYZE = "30/minute"   # LLM analysis is the expensive call
RATE_LIMIT_EVALUATE = "20/minute"
RATE_LIMIT_STATIC = "60/minute"    # syntax/complexity checks, no model call
