from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 8000
    debug: bool = False
    cors_origins: list[str] = []
    session_duration_hours: int = 24
    secure_cookies: bool = False  # Set to True in production with HTTPS
    password_reset_code_minutes: int = 15
    password_reset_max_attempts: int = 5  # Wrong codes before the reset request is dropped
    # Bootstrap account created on first start when no user with this name exists
    admin_username: str = "admin"
    admin_password: str = "changeme"
    # Build metadata injected during Docker build via environment variables
    git_commit_hash: str = "unknown"
    git_commit_date: str = "unknown"
    build_time: str = "unknown"

    model_config = {
        "env_file": [".env"],
        "env_prefix": "SCHOOL_",
        "extra": "ignore",
    }
