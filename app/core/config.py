from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # App
    app_name: str = "StudyShare"
    debug: bool = False
    environment: str = "development"  # development, production
    log_level: str = ""  # DEBUG, INFO, WARNING, ERROR, CRITICAL (empty = auto based on environment)
    log_to_file: bool = True

    # Database (SQLite for local dev, PostgreSQL for production)
    database_url: str = "sqlite:///./studyshare.db"

    # Frontend
    frontend_url: str = "http://localhost:3000"
    app_url: str = "http://localhost:3000"  # Sent to OpenRouter as HTTP-Referer

    # CORS (comma-separated origins, empty = local defaults)
    allowed_origins: str = ""

    # Clerk session tokens. RS256 uses the PEM public key from the Clerk
    # dashboard; HS* algorithms treat clerk_jwt_key as a shared secret.
    clerk_jwt_key: str = ""
    clerk_jwt_algorithm: str = "RS256"
    clerk_issuer: str = ""
    clerk_webhook_secret: str = ""

    # Cloudflare R2 (S3-compatible)
    r2_account_id: str = ""
    r2_access_key_id: str = ""
    r2_secret_access_key: str = ""
    r2_bucket_name: str = "studyshare"
    r2_public_url: str = ""

    # OpenRouter
    openrouter_api_key: str = ""
    openrouter_text_model: str = "google/gemma-3-27b-it:free"
    openrouter_vision_model: str = "google/gemini-2.0-flash-exp"
    openrouter_timeout_seconds: float = 60.0

    # Storage quota (R2 free tier)
    storage_limit_bytes: int = 2 * 1024 * 1024 * 1024
    storage_warning_threshold: float = 0.9

    # Audit logging
    audit_log_enabled: bool = True

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()

# Validate Clerk verification key
if not settings.clerk_jwt_key and settings.environment == "production":
    raise RuntimeError(
        "CLERK_JWT_KEY is not set. Copy the JWT public key from the Clerk "
        "dashboard into the CLERK_JWT_KEY env var."
    )
