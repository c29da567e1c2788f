import os
from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

load_dotenv()

DEFAULT_README = (
    "# Betza-Enhanced Musketeer-Stockfish\n\n"
    "Automatically generated repository with Betza notation support."
)


class Settings(BaseModel):
    """Application settings loaded from environment: GitHub API location, staging/package paths, timeouts, upload retry policy, simulated build delays and job sweep policy.
    Why available: Single source of configuration so the orchestrator, uploader and HTTP facade agree on limits and paths."""
    port: int = int(os.getenv("PORT", "5000"))
    github_api_url: str = os.getenv("GITHUB_API_URL", "https://api.github.com")
    github_user_agent: str = os.getenv("GITHUB_USER_AGENT", "Betza-Integration-Tool")
    staging_dir: str = os.getenv("STAGING_DIR", "integration-files")
    package_path: str = os.getenv("PACKAGE_PATH", "integration-files.tar.gz")
    http_timeout_seconds: float = float(os.getenv("HTTP_TIMEOUT_SECONDS", "30"))
    request_timeout_seconds: float = float(os.getenv("REQUEST_TIMEOUT_SECONDS", "30"))
    upload_max_attempts: int = int(os.getenv("UPLOAD_MAX_ATTEMPTS", "3"))
    upload_retry_delay_seconds: float = float(os.getenv("UPLOAD_RETRY_DELAY_SECONDS", "1.0"))
    build_start_delay_seconds: float = float(os.getenv("BUILD_START_DELAY_SECONDS", "5"))
    build_finish_delay_seconds: float = float(os.getenv("BUILD_FINISH_DELAY_SECONDS", "10"))
    job_sweep_interval_seconds: float = float(os.getenv("JOB_SWEEP_INTERVAL_SECONDS", "3600"))
    failed_job_max_age_seconds: float = float(os.getenv("FAILED_JOB_MAX_AGE_SECONDS", "3600"))
    jobs_list_limit: int = int(os.getenv("JOBS_LIST_LIMIT", "20"))
    shutdown_grace_seconds: float = float(os.getenv("SHUTDOWN_GRACE_SECONDS", "5"))
    default_description: str = os.getenv(
        "DEFAULT_DESCRIPTION", "Betza-Enhanced Musketeer-Stockfish Chess Engine"
    )
    readme_content: str = os.getenv("README_CONTENT", DEFAULT_README)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    @field_validator(
        "port",
        "http_timeout_seconds",
        "request_timeout_seconds",
        "upload_max_attempts",
        "job_sweep_interval_seconds",
        "failed_job_max_age_seconds",
        "jobs_list_limit",
    )
    @classmethod
    def must_be_positive(cls, v):
        """Ensure ports, timeouts, attempt caps and sweep settings are positive. Prevents invalid config from env."""
        if v <= 0:
            raise ValueError("must be > 0")
        return v

    @field_validator(
        "upload_retry_delay_seconds",
        "build_start_delay_seconds",
        "build_finish_delay_seconds",
        "shutdown_grace_seconds",
    )
    @classmethod
    def must_not_be_negative(cls, v):
        """Delays may be zero (tests, local runs) but never negative."""
        if v < 0:
            raise ValueError("must be >= 0")
        return v


settings = Settings()
