"""LogicMonitor tools exposed by LMProxy.

This package provides:
- Tool catalog and dispatch (TOOLS, list_tools, call_tool)
- Per-call collaborators (ToolContext)
- Pydantic input models (schemas)
"""

from lmproxy.app.tools.base import Tool, ToolContext
from lmproxy.app.tools.registry import TOOLS, call_tool, list_tools

__all__ = [
    "Tool",
    "ToolContext",
    "TOOLS",
    "call_tool",
    "list_tools",
]
