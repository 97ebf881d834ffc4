from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, Tuple


class Settings(BaseSettings):
    """
    Application settings managed via Pydantic Settings.
    Reads variables from environment and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    # --- Application Meta ---
    APP_NAME: str = "AI Sales Dashboard"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # --- AI/LLM Configuration ---
    # Optional so the dashboard can start without a key; checked per request.
    GROQ_API_KEY: Optional[str] = Field(None, description="API Key for Groq Cloud")
    GROQ_BASE_URL: Optional[str] = Field(None, description="Override for the completions endpoint host")

    DEFAULT_MODEL: str = "openai/gpt-oss-120b"
    TEMPERATURE: float = 0.2
    MAX_TOKENS: int = 1024
    REQUEST_TIMEOUT_SECONDS: float = 60.0

    # --- Retry Policy ---
    MAX_ATTEMPTS: int = 3
    BACKOFF_BASE_MS: int = 1000
    BACKOFF_MAX_MS: int = 5000

    # --- Prompt / Dashboard Limits ---
    CONTEXT_MAX_ROWS: int = 50
    CONTEXT_SAMPLE_ROWS: int = 5
    TOP_N_ROWS: int = 10
    CHART_MAX_ROWS: int = 15
    PIE_MAX_SLICES: int = 6

    # --- Server Configuration ---
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # --- Data Ingestion Limits ---
    MAX_UPLOAD_SIZE_MB: int = 10
    ALLOWED_EXTENSIONS: Tuple[str, ...] = (".csv", ".xlsx")

    @field_validator("GROQ_API_KEY")
    @classmethod
    def validate_api_key(cls, v: Optional[str]) -> Optional[str]:
        """
        Blank keys are treated as missing so the gateway reports a
        configuration error instead of sending an empty bearer token.
        """
        if v is None:
            return v
        v = v.strip()
        return v or None

settings = Settings()
