"""Middleware package for LMProxy."""

from lmproxy.app.middleware.auth import LMCredentials, require_lm_credentials
from lmproxy.app.middleware.request_id import RequestIdMiddleware, get_request_id

__all__ = [
    "LMCredentials",
    "require_lm_credentials",
    "RequestIdMiddleware",
    "get_request_id",
]
