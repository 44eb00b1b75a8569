from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"
    TIMEZONE: str = "UTC"

    CONVERSATION_TTL_MINUTES: int = 30
    COMPLETED_RETENTION_MINUTES: int = 5
    SWEEP_INTERVAL_SECONDS: float = 60.0

    WORK_HOURS_START: int = 9
    WORK_HOURS_END: int = 17
    SLOT_SEARCH_DAYS: int = 7
    SLOT_STRIDE_MINUTES: int = 30
    BOOKING_BUFFER_MINUTES: int = 15
    MAX_ALTERNATIVES: int = 5
    DEFAULT_EVENT_DURATION_MINUTES: int = 60

    OPENAI_API_KEY: str | None = None
    OPENAI_MODEL_PARSE: str = "gpt-4o-mini"
    OPENAI_TEMPERATURE_PARSE: float = 0.0

    CALENDAR_API_BASE_URL: str = "http://localhost:8080/v1"
    CALENDAR_API_KEY: str | None = None
    CALENDAR_PROVIDER_NAMES: list[str] = ["google", "microsoft"]
    CALENDAR_TIMEOUT_SECONDS: float = 10.0


settings = Settings()
