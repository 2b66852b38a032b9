"""
This module sets up the logging configuration shared by the CLI, the worker and the remediation core.
Log lines carry the timestamp, log level, filename, function name, line number and the message.
Output goes to standard output; the level comes from PATCHFLEET_LOG_LEVEL (INFO unless overridden).
"""
import logging
import sys

from patchfleet.config import config

logging.basicConfig(
    format=(
        "%(asctime)s | %(levelname)s | %(filename)s | %(funcName)s() | "
        "line %(lineno)d | %(message)s"
    ),
    datefmt="%Y-%m-%d %H:%M:%S",
    level=getattr(logging, str(config.PATCHFLEET_LOG_LEVEL).upper(), logging.INFO),
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger("patchfleet")
