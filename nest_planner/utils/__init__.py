"""
Utility modules for the NEST planner.
"""

from nest_planner.utils.error_handling import (
    ConfigurationError,
    GeminiErrorClassifier,
    GenerationTimeoutError,
    MalformedResponseError,
    NestPlannerError,
    ProviderError,
    ProviderErrorClassifier,
    ValidationError,
    wrap_provider_errors,
)
from nest_planner.utils.helpers import (
    decode_data_uri,
    encode_data_uri,
    generate_id,
    parse_json_payload,
    split_data_uri,
    strip_code_fences,
    truncate_text,
)
from nest_planner.utils.logging import LogLevel, ServiceLogger, get_logger, setup_logging

__all__ = [
    "ConfigurationError",
    "GeminiErrorClassifier",
    "GenerationTimeoutError",
    "LogLevel",
    "MalformedResponseError",
    "NestPlannerError",
    "ProviderError",
    "ProviderErrorClassifier",
    "ServiceLogger",
    "ValidationError",
    "decode_data_uri",
    "encode_data_uri",
    "generate_id",
    "get_logger",
    "parse_json_payload",
    "setup_logging",
    "split_data_uri",
    "strip_code_fences",
    "truncate_text",
    "wrap_provider_errors",
]
