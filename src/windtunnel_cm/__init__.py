"""
Wind tunnel Command Manager message parser.

Launch the console driver with ``python -m windtunnel_cm`` or the MCP
tool server with ``windtunnel-cm-mcp``; library users want
``parse_command`` and ``HistoryRing``.
"""

from .models.history import HistoryRing
from .protocol.parser import parse_command

__all__ = ["HistoryRing", "parse_command"]
