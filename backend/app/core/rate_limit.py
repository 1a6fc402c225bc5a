"""Shared rate limiter instance for use across route files."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import settings

limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)

# Storefront endpoints are anonymous and get a tighter budget
public_limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)
