"""MCP server entry point for the wind tunnel Command Manager.

Exposes the message parser and its history ring as tools, resources,
and prompts via the Model Context Protocol over stdio.
"""

from __future__ import annotations

import io
import json
import logging
from typing import Any

from mcp.server.fastmcp import FastMCP

from .models.history import HISTORY_CAPACITY, HistoryRing
from .models.parameters import MAX_NAME_LENGTH
from .protocol.commands import (
    DATA_OPCODES,
    KNOWN_OPCODES,
    Opcode,
    build_polar_number,
    build_run_number,
    build_user_fields,
    build_user_message,
)
from .protocol.framing import parse_message
from .protocol.parser import parse_command

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "windtunnel-cm",
    instructions="MCP server for the wind tunnel Command Manager message protocol",
)

# Session state: one history ring per server process
_history = HistoryRing()

OPCODE_DESCRIPTIONS = {
    Opcode.RUN_NUMBER: "Set the run number (decimal integer payload)",
    Opcode.POLAR_NUMBER: "Set the polar number (decimal integer payload)",
    Opcode.USER_MESSAGE: "Display a free-text operator message",
    Opcode.USER_FIELDS: "Report comma-separated name,value parameter pairs",
    Opcode.HISTORY: "List the most recent data opcodes, newest first",
}


def _submit(message: str) -> dict[str, Any]:
    """Run one message through the parser and report what happened."""
    sink = io.StringIO()
    response = parse_command(message, _history, sink)
    framed = parse_message(message)
    opcode = Opcode.from_text(framed.opcode) if framed else Opcode.UNKNOWN
    return {
        "accepted": response is not None,
        "opcode": framed.opcode if framed else None,
        "recorded": response is not None and opcode in DATA_OPCODES,
        "output": sink.getvalue().splitlines(),
    }


# ─── MESSAGE TOOLS ────────────────────────────────────────────────────

@mcp.tool()
def send_message(message: str) -> dict[str, Any]:
    """Parse a raw Command Manager message, e.g. ``RUN_NO____123#``.

    Unframed messages and unknown opcodes are accepted silently and
    produce no output.
    """
    return _submit(message)


@mcp.tool()
def send_run_number(number: int) -> dict[str, Any]:
    """Send a RUN_NO____ message with the given run number."""
    try:
        message = build_run_number(number)
    except ValueError as exc:
        return {"error": str(exc)}
    return _submit(message)


@mcp.tool()
def send_polar_number(number: int) -> dict[str, Any]:
    """Send a POLAR_NO__ message with the given polar number."""
    try:
        message = build_polar_number(number)
    except ValueError as exc:
        return {"error": str(exc)}
    return _submit(message)


@mcp.tool()
def send_user_message(text: str) -> dict[str, Any]:
    """Send a USR_MSG___ free-text message.

    Args:
        text: Message text; must not contain '#'.
    """
    try:
        message = build_user_message(text)
    except ValueError as exc:
        return {"error": str(exc)}
    return _submit(message)


@mcp.tool()
def send_parameters(parameters: dict[str, float]) -> dict[str, Any]:
    """Send a D_USR_FLD_ parameter list.

    Args:
        parameters: Mapping of parameter name (max 15 chars) to value,
                    e.g. {"Alpha": 4.5, "Beta": -0.25}.
    """
    try:
        message = build_user_fields(parameters.items())
    except ValueError as exc:
        return {"error": str(exc)}
    return _submit(message)


@mcp.tool()
def get_history() -> dict[str, Any]:
    """Return the most recent data opcodes, newest first.

    Reading the history does not record anything in it.
    """
    return _history.to_dict()


@mcp.tool()
def list_opcodes() -> dict[str, Any]:
    """List the recognized opcodes and whether they are recorded in history."""
    return {
        "opcodes": [
            {
                "opcode": opcode.value,
                "name": opcode.name,
                "description": OPCODE_DESCRIPTIONS[opcode],
                "recorded": opcode in DATA_OPCODES,
            }
            for opcode in Opcode
            if opcode in KNOWN_OPCODES
        ]
    }


# ─── MCP RESOURCES ───────────────────────────────────────────────────

@mcp.resource("windtunnel://history")
def resource_history() -> str:
    """Current history ring contents."""
    return json.dumps(_history.to_dict())


@mcp.resource("windtunnel://opcodes")
def resource_opcodes() -> str:
    """Opcode alphabet and protocol limits."""
    return json.dumps({
        **list_opcodes(),
        "history_capacity": HISTORY_CAPACITY,
        "max_parameter_name_length": MAX_NAME_LENGTH,
    })


# ─── MCP PROMPTS ─────────────────────────────────────────────────────

@mcp.prompt()
def configure_run(run: int, polar: int) -> str:
    """Guide the AI through announcing a new measurement run.

    Args:
        run: Run number to set.
        polar: Polar number to set.
    """
    return f"""Prepare the tunnel for run {run}, polar {polar}.
Steps:
- Use send_run_number with {run}
- Use send_polar_number with {polar}
- Use send_user_message to announce the run to operators
- Use send_parameters for any per-run parameters (names up to {MAX_NAME_LENGTH} chars)

Finish with get_history to confirm the commands were recorded."""


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    logging.basicConfig(level=logging.INFO)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
