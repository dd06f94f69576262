from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

from ..domain.models import LightSettings


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", validate_assignment=True)

    app_name: str = "Auto Light Control"
    room_id: str = "room"

    # Decision thresholds (read fresh on every event)
    luminance_direct_threshold: float = 10.0
    luminance_adjacent_threshold: float = -1.0  # -1 => same as direct
    hysteresis: float = Field(default=1.2, ge=1.0)
    keep_in_direct: bool = False

    # Storage
    sqlite_path: str = Field(default="autolight.db")

    # Logging
    log_file: str = "autolight.log"
    log_level: str = "INFO"

    # Output: "log" keeps messages in-process; "webhook" posts them downstream
    output_mode: str = Field(default="log")
    webhook_url: str = "http://127.0.0.1:1880/autolight"
    webhook_timeout_seconds: float = 5.0

    def light_settings(self) -> LightSettings:
        return LightSettings(
            luminance_direct_threshold=self.luminance_direct_threshold,
            luminance_adjacent_threshold=self.luminance_adjacent_threshold,
            hysteresis=self.hysteresis,
            keep_in_direct=self.keep_in_direct,
        )


settings = Settings()
