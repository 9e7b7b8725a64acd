from __future__ import annotations
import logging
import sys
from loguru import logger

# ---- stdlib logging -> loguru intercept ----
class InterceptHandler(logging.Handler):
    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.opt(depth=6, exception=record.exc_info).log(level, record.getMessage())

def _hook_stdlib_logging() -> None:
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    # uvicorn/fastapi install their own handlers; pull them through loguru too
    for noisy in ("uvicorn", "uvicorn.access", "uvicorn.error", "fastapi", "asyncio"):
        l = logging.getLogger(noisy)
        l.handlers = [InterceptHandler()]
        l.propagate = False

# ---- dev console format (human friendly, extra hidden) ----
DEV_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level:<7}</level> | "
    "<cyan>{extra[name]}</cyan> | "
    "<cyan>{file}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

def setup_logging_dev(log_level: str = "INFO") -> None:
    """
    Console-only loguru setup for development.
    - coloured console output
    - stdlib logging routed through loguru
    """
    logger.remove()
    logger.configure(extra={"name": "dspolicy"})
    logger.add(
        sink=lambda m: print(m, end=""),
        format=DEV_FORMAT,
        colorize=True,
        backtrace=True,
        diagnose=False,
        level=log_level.upper(),
        enqueue=False,
    )
    _hook_stdlib_logging()

def setup_logging_json(log_level: str = "INFO") -> None:
    """
    Production loguru setup: one JSON document per line on stdout.

    The router hot path logs from many request threads, so the sink is
    queued to keep writes off the calling thread.
    """
    logger.remove()
    logger.configure(extra={"name": "dspolicy"})
    logger.add(
        sink=sys.stdout,
        serialize=True,
        backtrace=False,
        diagnose=False,
        level=log_level.upper(),
        enqueue=True,
    )
    _hook_stdlib_logging()

def setup_logging(log_level: str = "INFO", log_format: str = "dev") -> None:
    if log_format.lower() == "json":
        setup_logging_json(log_level)
    else:
        setup_logging_dev(log_level)

def get_logger(name: str = "dspolicy", **ctx):
    """Return the loguru logger, optionally bound to extra context."""
    return logger.bind(name=name, **ctx)
