from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", frozen=True)

    PROJECT_NAME: str = "Resumable Upload Server"
    HOST: str = "0.0.0.0"
    PORT: int = 18181
    LOG_LEVEL: str = "INFO"

    # JWT Settings
    SECRET_KEY: str = "supersecretkey"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24  # 1 day

    # Single account allowed to obtain tokens
    AUTH_USERNAME: str = "admin"
    AUTH_PASSWORD: str = "admin@123"

    # Storage settings
    UPLOAD_DIR: Path = Path("uploads")
    MAX_FILE_SIZE: int = 20 * 1000 ** 3  # 20GB, decimal
    CHUNK_SIZE: int = 5 * 1024 * 1024  # 5MB, only used to reconcile resumes
    PREVIEW_MAX_SIZE: int = 10 * 1024 * 1024  # 10MB

    # Cleanup settings, a timeout of 0 keeps sessions until completion or delete
    CLEANUP_INTERVAL_SECONDS: int = 3600
    STALE_UPLOAD_TIMEOUT_SECONDS: int = 0

    @property
    def upload_root(self) -> Path:
        """Canonical absolute form of UPLOAD_DIR."""
        return self.UPLOAD_DIR.resolve()

# Global settings instance
settings = Settings()
