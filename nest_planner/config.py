"""
Configuration management for the NEST planner.

This module handles loading configuration from the environment: model
names per generation capability, pipeline timing constants (itinerary
deadline, video polling cadence, voice framing) and logging settings.
API credentials are deliberately not read here; they are resolved at call
time through :class:`nest_planner.client.CredentialProvider`.
"""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv
from loguru import logger
from pydantic import BaseModel, Field, field_validator

from nest_planner.utils.logging import LogLevel

# Load environment variables from .env file
load_dotenv()


class ModelConfig(BaseModel):
    """Configuration for the model behind one generation capability."""

    name: str = Field(..., description="Model name to use")
    temperature: float | None = Field(default=None, description="Model temperature")

    @field_validator("temperature")
    @classmethod
    def validate_temperature(cls, value: float | None) -> float | None:
        """Validate temperature is within the range Gemini accepts."""
        if value is not None and not (0.0 <= value <= 2.0):
            raise ValueError(f"Temperature must be between 0.0 and 2.0, got {value}")
        return value

    @classmethod
    def from_env(
        cls, prefix: str, default_name: str, default_temperature: float | None = None
    ) -> "ModelConfig":
        """Create a ModelConfig from <PREFIX>_MODEL / <PREFIX>_TEMPERATURE."""
        raw_temperature = os.getenv(f"{prefix}_TEMPERATURE")
        return cls(
            name=os.getenv(f"{prefix}_MODEL", default_name),
            temperature=(
                float(raw_temperature) if raw_temperature else default_temperature
            ),
        )


class PipelineConfig(BaseModel):
    """Timing and framing constants for the generation pipeline."""

    itinerary_timeout_seconds: float = Field(
        default=60.0, description="Deadline for a full itinerary generation"
    )
    video_poll_interval_seconds: float = Field(
        default=10.0, description="Fixed delay between video operation polls"
    )
    video_max_polls: int = Field(
        default=60, description="Polls before a video teaser is abandoned"
    )
    voice_frame_samples: int = Field(
        default=4096, description="Microphone samples per outbound frame"
    )
    voice_input_rate: int = Field(
        default=16000, description="Sample rate the live model expects"
    )
    voice_output_rate: int = Field(
        default=24000, description="Sample rate of synthesized audio"
    )
    voice_outbound_queue_size: int = Field(
        default=32, description="Outbound frames buffered before dropping"
    )
    voice_name: str = Field(default="Zephyr", description="Prebuilt voice name")

    @classmethod
    def from_env(cls) -> "PipelineConfig":
        """Create a PipelineConfig from environment variables."""
        return cls(
            itinerary_timeout_seconds=float(
                os.getenv("ITINERARY_TIMEOUT_SECONDS", "60")
            ),
            video_poll_interval_seconds=float(
                os.getenv("VIDEO_POLL_INTERVAL_SECONDS", "10")
            ),
            video_max_polls=int(os.getenv("VIDEO_MAX_POLLS", "60")),
            voice_frame_samples=int(os.getenv("VOICE_FRAME_SAMPLES", "4096")),
            voice_input_rate=int(os.getenv("VOICE_INPUT_RATE", "16000")),
            voice_output_rate=int(os.getenv("VOICE_OUTPUT_RATE", "24000")),
            voice_outbound_queue_size=int(os.getenv("VOICE_OUTBOUND_QUEUE", "32")),
            voice_name=os.getenv("VOICE_NAME", "Zephyr"),
        )


class SystemConfig(BaseModel):
    """System-wide configuration."""

    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")
    log_file: str | None = Field(default=None, description="Optional log file")
    environment: str = Field(
        default="development",
        description="Environment (development, staging, production)",
    )

    @classmethod
    def from_env(cls) -> "SystemConfig":
        """Create a SystemConfig from environment variables."""
        return cls(
            log_level=LogLevel(os.getenv("LOG_LEVEL", "INFO").upper()),
            log_file=os.getenv("LOG_FILE"),
            environment=os.getenv("ENVIRONMENT", "development"),
        )


def _default_models() -> dict[str, ModelConfig]:
    return {
        "suggestions": ModelConfig.from_env("SUGGESTIONS", "gemini-2.5-flash", 1.0),
        "itinerary": ModelConfig.from_env("ITINERARY", "gemini-2.5-flash"),
        "details": ModelConfig.from_env("DETAILS", "gemini-2.5-flash", 0.7),
        "grounding": ModelConfig.from_env("GROUNDING", "gemini-2.5-flash"),
        "tips": ModelConfig.from_env("TIPS", "gemini-2.5-flash-lite"),
        "image": ModelConfig.from_env("IMAGE", "gemini-2.5-flash-image"),
        "video": ModelConfig.from_env("VIDEO", "veo-3.1-fast-generate-preview"),
        "chat": ModelConfig.from_env("CHAT", "gemini-3-pro-preview"),
        "live": ModelConfig.from_env(
            "LIVE", "gemini-2.5-flash-native-audio-preview-09-2025"
        ),
    }


@dataclass
class NestPlannerConfig:
    """Main configuration class for the NEST planner."""

    system: SystemConfig = field(default_factory=SystemConfig.from_env)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig.from_env)
    models: dict[str, ModelConfig] = field(default_factory=_default_models)

    def validate(self, raise_error: bool = False) -> bool:
        """
        Validate the timing constants.

        Args:
            raise_error: If True, raise ValueError instead of returning False

        Returns:
            True if configuration is valid, False otherwise
        """
        problems = []
        if self.pipeline.itinerary_timeout_seconds <= 0:
            problems.append("ITINERARY_TIMEOUT_SECONDS must be positive")
        if self.pipeline.video_poll_interval_seconds < 0:
            problems.append("VIDEO_POLL_INTERVAL_SECONDS must not be negative")
        if self.pipeline.video_max_polls < 1:
            problems.append("VIDEO_MAX_POLLS must be at least 1")
        if self.pipeline.voice_outbound_queue_size < 1:
            problems.append("VOICE_OUTBOUND_QUEUE must be at least 1")

        if problems:
            message = "; ".join(problems)
            logger.error(f"Configuration validation failed: {message}")
            if raise_error:
                raise ValueError(message)
            return False
        return True

    def get_model(self, capability: str) -> ModelConfig:
        """
        Get model configuration for a generation capability.

        Args:
            capability: Capability key such as "itinerary" or "video"

        Returns:
            ModelConfig for the capability, or a gemini-2.5-flash default
        """
        return self.models.get(capability, ModelConfig(name="gemini-2.5-flash"))


# Global configuration instance
config = NestPlannerConfig()


def initialize_config(
    custom_config_path: str | None = None,
    validate: bool = True,
    raise_on_error: bool = False,
) -> NestPlannerConfig:
    """
    Initialize and validate the configuration.

    Args:
        custom_config_path: Path to a custom .env file to load
        validate: Whether to validate the configuration
        raise_on_error: Whether to raise an exception on validation failure

    Returns:
        Initialized configuration object

    Raises:
        FileNotFoundError: If custom_config_path is provided but does not exist
    """
    if custom_config_path:
        if not os.path.exists(custom_config_path):
            error_msg = f"Custom configuration file not found: {custom_config_path}"
            logger.error(error_msg)
            raise FileNotFoundError(error_msg)

        logger.info(f"Loading custom configuration from {custom_config_path}")
        load_dotenv(custom_config_path, override=True)

        # Reload in place so modules holding `config` see the new values
        config.system = SystemConfig.from_env()
        config.pipeline = PipelineConfig.from_env()
        config.models = _default_models()

    if validate and not config.validate(raise_error=raise_on_error):
        logger.warning(
            "Configuration validation failed. Generation may not behave as "
            "expected; check the timing variables in your environment."
        )

    return config
