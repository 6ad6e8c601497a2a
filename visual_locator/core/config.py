"""Configuration management for the visual locator."""

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings

# Load environment variables
load_dotenv()


class Config(BaseSettings):
    """Configuration class for the coordinate locator and drift calibrator."""

    # OpenAI Configuration
    openai_api_key: str = Field(default="", description="OpenAI API key (only needed for OpenAIOracle)")
    openai_model: str = Field(default="gpt-4o")
    openai_max_tokens: int = Field(default=400)
    openai_temperature: float = Field(default=0.0)

    # Locator parameters
    locator_grid_size: int = Field(default=100, description="Grid spacing for the full-frame capture")
    locator_zoom_level: float = Field(default=2.0)
    locator_min_zoom_grid: int = Field(default=20)
    locator_zoom_min_width: int = Field(default=280)
    locator_zoom_min_height: int = Field(default=220)
    locator_default_zoom_width: int = Field(default=400)  # used when image dimensions are unknown
    locator_default_zoom_height: int = Field(default=300)
    locator_confidence_threshold: float = Field(default=0.85, description="Self-assessed confidence that skips zoom")

    # Suspicion heuristic
    suspicion_grid_interval: int = Field(default=100)
    suspicion_round_interval: int = Field(default=25)

    # Drift calibration
    calibration_window: int = Field(default=50)
    calibration_min_samples: int = Field(default=5)
    calibration_success_weight: float = Field(default=1.5)
    calibration_weighting: str = Field(default="recency", description="recency | uniform")

    # Telemetry
    telemetry_base_url: Optional[str] = Field(default=None, description="Base URL receiving /telemetry/event posts")
    telemetry_timeout: float = Field(default=2.0)

    # Framework Configuration
    log_level: str = Field(default="INFO")
    log_dir: str = Field(default="logs")
    save_locator_debug: bool = Field(default=False)
    locator_debug_dir: str = Field(default="locator_debug")
    trace_dir: str = Field(default="locator_traces")

    class Config:
        """Pydantic configuration for environment loading."""

        env_file = ".env"
        case_sensitive = False
        extra = "ignore"  # Ignore unexpected env vars rather than raising errors

    def validate_config(self) -> bool:
        """Validate configuration values."""
        if self.locator_confidence_threshold < 0 or self.locator_confidence_threshold > 1:
            raise ValueError("Locator confidence threshold must be between 0 and 1")

        if self.locator_grid_size <= 0:
            raise ValueError("Locator grid size must be positive")

        if self.locator_zoom_level <= 0:
            raise ValueError("Locator zoom level must be positive")

        if self.calibration_window <= 0 or self.calibration_min_samples <= 0:
            raise ValueError("Calibration window and minimum sample count must be positive")

        if self.calibration_weighting not in ("recency", "uniform"):
            raise ValueError(f"Unknown calibration weighting: {self.calibration_weighting}")

        return True

    def get_trace_path(self) -> str:
        """Get the full path to the trace directory."""
        return os.path.join(os.getcwd(), self.trace_dir)


# Global configuration instance
try:
    config = Config()
except Exception as e:
    print(f"Warning: Could not load configuration: {e}")
    config = Config(openai_api_key="")
