from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./cueclub.db"
    SQL_ECHO: bool = False
    SECRET_KEY: str = "YOUR_SECRET_KEY_HERE"
    JWT_ALGORITHM: str = "HS256"

    # Lifecycle automation
    TARGET_ROSTER_SIZE: int = 16
    EARLY_LOCK_HOURS: float = 24.0

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
