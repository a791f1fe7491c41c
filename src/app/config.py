"""Configuration management using Pydantic settings."""

from typing import Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from perception.simulation.scoring import HazardLogPolicy


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "OMNI-AWARE"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # xAI reasoning service; key comes from XAI_API_KEY
    xai_api_key: Optional[SecretStr] = None
    xai_api_url: str = "https://api.x.ai/v1/chat/completions"
    xai_model: str = "grok-4"
    advisory_max_tokens: int = 100
    advisory_timeout: float = 10.0          # seconds; expiry falls back locally
    advisory_hazard_threshold: float = 0.7  # entities above this go in the prompt

    # Simulation clock
    refresh_hz: float = Field(60.0, gt=0)
    substeps: int = Field(7, ge=1)
    seed: Optional[int] = None             # fixed seed for reproducible runs

    # Spawning
    spawn_probability: float = Field(0.008, ge=0.0, le=1.0)  # per substep
    spawn_distance: float = 220.0
    lateral_spread: float = 12.0

    # Ego vehicle
    ego_max_speed: float = 112.0    # km/h
    ego_acceleration: float = 1.2   # km/h per simulated second
    cull_threshold: float = -10.0

    # Hazard events
    hazard_log_threshold: float = 0.8
    hazard_log_policy: HazardLogPolicy = HazardLogPolicy.CROSSING  # "crossing" or "every_tick"
    event_log_capacity: int = Field(21, ge=1)

    # Vitals
    vitals_cadence: int = Field(14, ge=1)  # frames between random-walk steps

    # Frame buffer
    frame_width: int = 1024
    frame_height: int = 600

    # Speech
    tts_enabled: bool = True
    piper_bin: str = "~/models/piper/piper"
    piper_voice: str = "~/models/piper/en_US-amy-medium.onnx"


settings = Settings()
