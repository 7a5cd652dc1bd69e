from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./boq.db"
    LOG_LEVEL: str = "INFO"

    # Gemini rate advisor - blank key means AI estimates are skipped
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-2.5-flash"
    ADVISOR_TIMEOUT_SECONDS: float = 30.0
    # Free tier allows ~15 req/min, so one call every 4.5s stays under it
    ADVISOR_COOLDOWN_SECONDS: float = 4.5
    RATE_REGION: str = "India"
    RATE_CURRENCY: str = "INR"

    # Upload / export
    MAX_UPLOAD_MB: int = 50
    CURRENCY_SYMBOL: str = "₹"

    class Config:
        env_file = ".env"


settings = Settings()
