from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "postgresql://lifelog:lifelog@db:5432/lifelog"
    APP_ENV: str = "development"
    SECRET_KEY: str = "changeme-secret-key"
    LOG_LEVEL: str = "INFO"

    # Comma-separated allowed origins, or "*" to allow all.
    # Example: "https://myapp.com,https://api.myapp.com"
    CORS_ORIGINS: str = "*"

    # IANA zone that defines the user's calendar day ("today", "yesterday").
    TIMEZONE: str = "Asia/Seoul"

    # Orchestrator re-check period.
    REMINDER_CHECK_INTERVAL_SECONDS: int = 300

    # Summarization provider (OpenAI-compatible chat completions).
    OPENAI_API_KEY: str | None = None
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    SUMMARY_MODEL: str = "gpt-4o-mini"
    SUMMARY_MAX_TOKENS: int = 2000
    SUMMARY_TEMPERATURE: float = 0.7
    SUMMARY_TIMEOUT_SECONDS: float = 60.0

    @property
    def cors_origins_list(self) -> list[str]:
        if self.CORS_ORIGINS.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


settings = Settings()
