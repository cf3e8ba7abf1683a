import os
import logging
from flare_agent.core.paths import is_log_file
from .base import FlareContext

logger = logging.getLogger("flare_agent.collectors.logs")


def flush_logging():
    """Flushes every handler known to the logging hierarchy so the latest lines hit disk."""
    loggers = [logging.getLogger()] + [
        l for l in logging.Logger.manager.loggerDict.values() if isinstance(l, logging.Logger)
    ]
    for l in loggers:
        for handler in l.handlers:
            handler.flush()


def write_log_files(ctx: FlareContext, log_file_path: str = None) -> int:
    """
    Copies every *.log (or *.log.N) file found next to `log_file_path`, recursively,
    into logs/<basename>. Same basenames overwrite each other.
    """
    flush_logging()
    log_file_path = log_file_path or ctx.settings.LOG_FILE
    log_dir = os.path.dirname(os.path.abspath(log_file_path))

    copied = 0
    for dirpath, _, files in os.walk(log_dir):
        for name in sorted(files):
            src = os.path.join(dirpath, name)
            if not os.path.isfile(src) or not is_log_file(name):
                continue
            ctx.copy_file(src, os.path.join("logs", name))
            ctx.perms.add(src)
            ctx.perms.add_parent_chain(src)
            copied += 1
    logger.debug(f"Copied {copied} log files from {log_dir}")
    return copied
