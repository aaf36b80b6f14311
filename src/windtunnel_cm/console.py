"""Console driver: canned demonstration messages and an interactive loop."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Sequence, TextIO

from .models.history import HistoryRing
from .protocol.parser import parse_command

logger = logging.getLogger(__name__)

EXIT_COMMAND = "EXIT"

# One message per opcode, a second data set, the history query, then the
# unknown-opcode, bad-payload and missing-sentinel cases.
DEMO_MESSAGES = (
    "RUN_NO____123#",
    "POLAR_NO__2#",
    "USR_MSG___Start Tunnel#",
    "D_USR_FLD_Parameter1,0.004947,Parameter2,0.203044,#",
    "RUN_NO____124#",
    "POLAR_NO__3#",
    "D_USR_FLD_Parameter3,0.02347,Parameter4,0.12343044,ParameterT,1.12345,#",
    "HISTORY___#",
    "UNKNOWN___test#",
    "RUN_NO____ABC#",
    "RUN_NO____123",
)


def run_demo(history: HistoryRing, sink: TextIO) -> None:
    """Feed the canned messages through the parser."""
    sink.write("Running example Command Manager messages...\n\n")
    for message in DEMO_MESSAGES:
        logger.debug("Demo message %r", message)
        parse_command(message, history, sink)


def interactive_loop(history: HistoryRing, stream: TextIO, sink: TextIO) -> int:
    """Parse lines from ``stream`` until ``EXIT`` or end of input.

    Returns:
        The number of lines handed to the parser.
    """
    sink.write(f"Enter command messages (type {EXIT_COMMAND} to quit):\n")
    sink.flush()
    count = 0
    for raw in stream:
        line = raw.rstrip("\r\n")
        if line == EXIT_COMMAND:
            break
        parse_command(line, history, sink)
        sink.flush()
        count += 1
    return count


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Wind tunnel Command Manager message parser"
    )
    parser.add_argument(
        "--no-demo",
        action="store_true",
        help="Skip the canned example messages",
    )
    parser.add_argument(
        "--no-interactive",
        action="store_true",
        help="Exit after the demo instead of reading from stdin",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Logging verbosity (logs go to stderr)",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    history = HistoryRing()
    if not args.no_demo:
        run_demo(history, sys.stdout)
    if not args.no_interactive:
        handled = interactive_loop(history, sys.stdin, sys.stdout)
        logger.info("Interactive session ended after %d messages", handled)
