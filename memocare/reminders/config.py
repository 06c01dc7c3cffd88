from pydantic_settings import BaseSettings, SettingsConfigDict


class ReminderSettings(BaseSettings):
    # Scheduling
    SCHEDULER_ENABLED: bool = True
    SCHEDULER_SCAN_INTERVAL_SECONDS: int = 60
    PUBLISH_TIMEOUT_SECONDS: float = 5.0  # per user, covers every open tab

    # Metrics
    METRICS_ENABLED: bool = False

    model_config = SettingsConfigDict(env_prefix="REMINDER_", env_file=".env", extra="ignore")


settings = ReminderSettings()
