# src/utils/logger.py
# Logging setup for the newsroom pipeline
# =======================================

"""
Central loguru configuration plus the structured-log helpers every stage
uses. Components never format free-text log lines for operational events:
they emit a payload dict (``event`` plus correlation fields) through
``StructuredLogMixin._emit_log`` so log files stay greppable by event name.
"""

import sys
from pathlib import Path
from typing import Any, Dict, Optional

from loguru import logger

from config.settings import DEBUG, ENVIRONMENT, LOGGING_CONFIG


class NewsroomLogger:
    """Configures loguru sinks once and hands out module-bound loggers."""

    def __init__(self):
        self.is_configured = False
        self.log_file_path: Optional[Path] = None

    @property
    def verbose(self) -> bool:
        return DEBUG or ENVIRONMENT == "development"

    def configure_logging(self, config: Optional[Dict[str, Any]] = None):
        """
        Install the console sink and, when a file path is configured, the
        rotating file sink.

        Args:
            config: logging settings; defaults to ``config.settings.LOGGING_CONFIG``
        """
        if self.is_configured:
            logger.debug("Logging already configured, skipping")
            return

        config = config or LOGGING_CONFIG

        logger.remove()
        self._configure_console_handler(config)
        if config.get("file_path"):
            self._configure_file_handler(config)

        self.is_configured = True
        logger.debug(f"Logging configured: level={config.get('level')}")

    def _configure_console_handler(self, config: Dict[str, Any]):
        if self.verbose:
            console_format = (
                "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "<cyan>{name}</cyan>:<cyan>{line}</cyan> | "
                "<level>{message}</level>"
            )
            console_level = "DEBUG"
        else:
            console_format = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {message}"
            console_level = config.get("level", "INFO")

        logger.add(
            sys.stdout,
            format=console_format,
            level=console_level,
            colorize=True,
            backtrace=self.verbose,
            diagnose=self.verbose,
        )

    def _configure_file_handler(self, config: Dict[str, Any]):
        self.log_file_path = Path(config["file_path"])
        self.log_file_path.parent.mkdir(parents=True, exist_ok=True)

        logger.add(
            str(self.log_file_path),
            format=config.get("format")
            or "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | {message}",
            level=config.get("level", "INFO"),
            rotation=config.get("max_file_size", "10 MB"),
            retention=config.get("retention", "30 days"),
            compression="gz",
            enqueue=True,
            backtrace=True,
            # Locals can hold API keys.
            diagnose=False,
        )

    def create_module_logger(self, module_name: str) -> Any:
        """Return a logger bound to ``module_name`` (e.g. ``rewrite.gateway``)."""
        if not self.is_configured:
            self.configure_logging()
        return logger.bind(module=module_name)

    def log_system_startup(
        self, version: str = "0.0.0", config_summary: Optional[Dict[str, Any]] = None
    ):
        logger.info("=" * 60)
        logger.info("NEWSROOM PIPELINE STARTED")
        logger.info("=" * 60)
        logger.info(f"Version: {version}")
        logger.info(f"Environment: {ENVIRONMENT} (debug={DEBUG})")

        if config_summary:
            logger.info("Configuration summary:")
            for key, value in config_summary.items():
                logger.info(f"  {key}: {value}")

        if self.log_file_path:
            logger.info(f"Writing logs to: {self.log_file_path}")

        logger.info("=" * 60)

    def log_error_with_context(
        self, error: Exception, context: Optional[Dict[str, Any]] = None
    ):
        """Log ``error`` with its context mapping and the current traceback."""
        logger.error(f"ERROR: {error}")

        if context:
            logger.error("Error context:")
            for key, value in context.items():
                logger.error(f"  {key}: {value}")

        logger.exception("Full stack trace:")


def build_log_payload(event: str, **fields: Any) -> Dict[str, Any]:
    """Return ``{"event": event, **fields}`` without ``None`` values or empty details."""

    payload: Dict[str, Any] = {"event": event}
    payload.update(fields)
    if not payload.get("details"):
        payload.pop("details", None)
    return {key: value for key, value in payload.items() if value is not None}


class StructuredLogMixin:
    """Adds ``_emit_log`` to classes that own a ``module_logger``.

    Subclasses may override ``_log_context`` to contribute correlation
    fields (run id, provider name...) to every payload.
    """

    module_logger: Any

    def _log_context(self) -> Dict[str, Any]:
        return {}

    def _emit_log(self, level: str, event: str, **fields: Any) -> None:
        context = self._log_context()
        context.update(fields)
        payload = build_log_payload(event, **context)

        log_method = getattr(self.module_logger, level, None)
        if callable(log_method):
            log_method(payload)
        else:
            self.module_logger.info(payload)


_logger_instance: Optional[NewsroomLogger] = None


def get_logger() -> NewsroomLogger:
    """Return the process-wide configured ``NewsroomLogger``."""
    global _logger_instance
    if _logger_instance is None:
        _logger_instance = NewsroomLogger()
        _logger_instance.configure_logging()
    return _logger_instance


def setup_logging(config: Optional[Dict[str, Any]] = None) -> NewsroomLogger:
    logger_instance = get_logger()
    if config:
        logger_instance.is_configured = False
        logger_instance.configure_logging(config)
    return logger_instance
