"""Shared slowapi limiter.

Kept out of main.py so routers can decorate endpoints without importing the
app module.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from models.config import settings

# Off in the test environment
limiter = Limiter(
    key_func=get_remote_address, enabled=settings.ENVIRONMENT != "test"
)
