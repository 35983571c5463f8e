from __future__ import annotations
import os
from pydantic import BaseModel

class Settings(BaseModel):
    environment: str = os.getenv("ENVIRONMENT", "dev")
    app_name: str = os.getenv("APP_NAME", "fotocontest-api")
    app_display_name: str = os.getenv("APP_DISPLAY_NAME", "Foto Contest")
    app_version: str = os.getenv("APP_VERSION", "0.1.0")
    git_sha: str = os.getenv("GIT_SHA", "dev")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    cors_origins: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
    database_url: str = os.getenv("DATABASE_URL", "postgresql+asyncpg://postgres:postgres@db:5432/fotocontest_dev")
    db_connect_timeout_seconds: float = float(os.getenv("DB_CONNECT_TIMEOUT_SECONDS", "10"))

    s3_endpoint: str = os.getenv("S3_ENDPOINT", "http://minio:9000")
    s3_access_key: str = os.getenv("S3_ACCESS_KEY", "minioadmin")
    s3_secret_key: str = os.getenv("S3_SECRET_KEY", "minioadmin")
    s3_bucket_uploads: str = os.getenv("S3_BUCKET_UPLOADS", "fotocontest-photos-dev")
    s3_timeout_seconds: float = float(os.getenv("S3_TIMEOUT_SECONDS", "10"))
    # Media exposure controls
    serve_media_via_api: bool = os.getenv("SERVE_MEDIA_VIA_API", "1") == "1"
    s3_public_base_url: str = os.getenv("S3_PUBLIC_BASE_URL", "")  # e.g. https://cdn.example.com/fotocontest-photos
    upload_max_bytes: int = int(os.getenv("UPLOAD_MAX_BYTES", str(10 * 1024 * 1024)))

    # Vote confirmation
    frontend_base_url: str = os.getenv("FRONTEND_BASE_URL", "http://localhost:5173")
    confirmation_ttl_minutes: int = int(os.getenv("CONFIRMATION_TTL_MINUTES", "60"))
    supersede_pending_tokens: bool = os.getenv("SUPERSEDE_PENDING_TOKENS", "0") == "1"

    # Notification delivery
    notifier: str = os.getenv("NOTIFIER", "log")  # log|smtp
    notification_mandatory: bool = os.getenv("NOTIFICATION_MANDATORY", "0") == "1"
    smtp_host: str = os.getenv("SMTP_HOST", "smtp.example.com")
    smtp_port: int = int(os.getenv("SMTP_PORT", "587"))
    smtp_user: str = os.getenv("SMTP_USER", "")
    smtp_password: str = os.getenv("SMTP_PASSWORD", "")
    smtp_from: str = os.getenv("SMTP_FROM", "Foto Contest <noreply@example.com>")
    smtp_timeout_seconds: float = float(os.getenv("SMTP_TIMEOUT_SECONDS", "15"))

    # Admin access
    jwt_secret: str = os.getenv("JWT_SECRET", "dev-secret-change-me")
    access_ttl_min: int = int(os.getenv("ACCESS_TTL_MIN", "15"))
    refresh_ttl_min: int = int(os.getenv("REFRESH_TTL_MIN", "10080"))  # 7d
    admin_email: str = os.getenv("ADMIN_EMAIL", "admin@example.com")
    admin_password_hash: str = os.getenv("ADMIN_PASSWORD_HASH", "")

    # Remembered voter
    voter_cookie_name: str = os.getenv("VOTER_COOKIE_NAME", "fc_voter")
    voter_cookie_max_age_days: int = int(os.getenv("VOTER_COOKIE_MAX_AGE_DAYS", "90"))
    voter_cookie_secure: bool = os.getenv("VOTER_COOKIE_SECURE", "0") == "1"

settings = Settings()
