"""LMProxy: LogicMonitor REST API exposed as callable tools."""

__version__ = "0.1.0"
