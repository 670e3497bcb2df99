"""
Global slowapi rate limiter.

Storage is in-process memory, so limits apply per instance.
create_app() switches it on or off from Settings.rate_limit_enabled.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(
    key_func=get_remote_address,
    storage_uri="memory://",
    enabled=False,
)
