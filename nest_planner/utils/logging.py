"""
Logging framework for the NEST planner.

This module configures loguru for the application, providing a consistent
logging interface across the generation services, the orchestrator and the
voice assistant.
"""

import json
import os
import sys
from datetime import datetime
from enum import Enum
from typing import Any

from loguru import logger


class LogLevel(str, Enum):
    """Log levels supported by the system."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def get_logger(name: str):
    """
    Get a logger instance for the specified module.

    Args:
        name: Module name (typically __name__)

    Returns:
        Configured logger instance with the module name attached
    """
    return logger.bind(name=name)


def setup_logging(
    log_level: LogLevel | str = LogLevel.INFO, log_file: str | None = None
):
    """
    Set up the logging configuration for the application.

    Args:
        log_level: The logging level to use (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path to write logs to
    """
    if isinstance(log_level, str):
        log_level = LogLevel(log_level.upper())

    logger.remove()

    logger.add(
        sys.stderr,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
            "<level>{message}</level>"
        ),
        level=log_level.value,
        colorize=True,
    )

    if log_file:
        os.makedirs(os.path.dirname(os.path.abspath(log_file)), exist_ok=True)
        logger.add(
            log_file,
            format=(
                "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | "
                "{name}:{function}:{line} - {message}"
            ),
            level=log_level.value,
            rotation="10 MB",
            compression="zip",
        )

    logger.info(f"Logging initialized with level {log_level.value}")


class ServiceLogger:
    """
    Logger specialized for generation services, binding the service name
    and instance id to every record.
    """

    def __init__(self, service_name: str, service_id: str | None = None):
        """
        Initialize the service logger.

        Args:
            service_name: Name of the service
            service_id: Unique ID for the service instance (optional)
        """
        self.service_name = service_name
        self.service_id = (
            service_id
            or f"{service_name}-{datetime.now().strftime('%Y%m%d%H%M%S')}"
        )
        self.logger = logger.bind(
            service_name=service_name, service_id=self.service_id
        )

    def debug(self, message: str, **kwargs):
        self.logger.debug(message, **kwargs)

    def info(self, message: str, **kwargs):
        self.logger.info(message, **kwargs)

    def warning(self, message: str, **kwargs):
        self.logger.warning(message, **kwargs)

    def error(self, message: str, **kwargs):
        self.logger.error(message, **kwargs)

    def log_api_request(
        self, api_name: str, endpoint: str, params: dict[str, Any] | None = None
    ):
        """
        Log an outbound HTTP request.

        Args:
            api_name: Name of the API being called
            endpoint: API endpoint (credential-free)
            params: Request parameters (optional)
        """
        self.debug(
            f"API Request: {api_name} - {endpoint}",
            api_name=api_name,
            endpoint=endpoint,
            params=self._safe_json(params),
        )

    def log_api_response(self, api_name: str, endpoint: str, status_code: int):
        """
        Log an HTTP response status.

        Args:
            api_name: Name of the API being called
            endpoint: API endpoint (credential-free)
            status_code: HTTP status code
        """
        self.debug(
            f"API Response: {api_name} - {endpoint} - Status: {status_code}",
            api_name=api_name,
            endpoint=endpoint,
            status_code=status_code,
        )

    def log_llm_input(self, model: str, prompt: Any, temperature: float | None):
        """
        Log input to a generative model.

        Args:
            model: Name of the model
            prompt: Prompt text or contents
            temperature: Temperature setting
        """
        self.debug(
            f"LLM Request: {model} - Temperature: {temperature}",
            model=model,
            temperature=temperature,
            prompt=self._safe_json(prompt),
        )

    def log_llm_output(self, model: str, response: Any):
        """
        Log output from a generative model.

        Args:
            model: Name of the model
            response: Model response text
        """
        self.debug(
            f"LLM Response: {model}",
            model=model,
            response=self._safe_json(response),
        )

    def _safe_json(self, obj: Any) -> str | None:
        """
        Safely convert an object to JSON, handling conversion errors.

        Args:
            obj: Object to convert to JSON

        Returns:
            JSON string or None if obj is None
        """
        if obj is None:
            return None

        try:
            return json.dumps(obj, default=str)
        except (TypeError, ValueError) as e:
            self.warning(f"Failed to serialize object to JSON: {e!s}")
            return str(obj)
