"""Upstream API providers for LMProxy.

This package provides:
- Base provider interface with shared HTTP client handling (BaseProvider)
- LogicMonitor REST client (LogicMonitorClient)
"""

from lmproxy.app.providers.base import BaseProvider
from lmproxy.app.providers.logicmonitor import LogicMonitorClient

__all__ = [
    "BaseProvider",
    "LogicMonitorClient",
]
