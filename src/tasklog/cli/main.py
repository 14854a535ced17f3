# src/tasklog/cli/main.py

"""
CLI entrypoint.

One process per command: initialize logging, build AppState, dispatch the
command, print the reply. Exit status is 0 on success, 1 when the command
was rejected, 2 for usage errors.
"""

from __future__ import annotations

import logging
import sys

from ..cli.bootstrap import create_initial_state
from ..cli.commands import registry
from ..config import get_settings
from ..items.errors import TasklogError
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "WARNING")).upper()
    console_level = getattr(logging, level_name, logging.WARNING)
    log_file = setup_logging(log_dir=settings.log_dir, console_level=console_level)

    args = list(sys.argv[1:] if argv is None else argv)
    logger.debug("Starting %s args=%s log=%s", settings.app_name, args, log_file)

    try:
        state = create_initial_state(settings=settings)
        reply = registry.handle(state, args)
    except TasklogError as e:
        logger.error("Cannot run command: %s", e)
        print(str(e), file=sys.stderr)
        return 1
    except Exception:
        logger.exception("Command failed unexpectedly: %s", args)
        raise

    stream = sys.stdout if reply.ok else sys.stderr
    print(reply.text, file=stream)
    return reply.exit_code


if __name__ == "__main__":
    sys.exit(main())
