"""Configuration settings for the statement notifier."""

import os
from dataclasses import dataclass, asdict
from typing import Dict, Any, Optional

from dotenv import load_dotenv

load_dotenv()

# Statement retrieval
DEFAULT_STATEMENT_ENDPOINT = (
    "https://app.n26.com/account-activity/period/$ACCOUNT_ID"
    "?endDate=$END_UNIX&format=pdf&startDate=$START_UNIX"
)
USER_AGENT = os.getenv(
    "USER_AGENT",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
)

# Notification
CURRENCY_CODE = os.getenv("CURRENCY_CODE", "EUR")

# Celery Configuration
CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", "redis://localhost:6379/0")
CELERY_TASK_SERIALIZER = "json"
CELERY_RESULT_SERIALIZER = "json"
CELERY_ACCEPT_CONTENT = ["json"]
CELERY_TIMEZONE = "UTC"
CHECK_INTERVAL_MINUTES = int(os.getenv("CHECK_INTERVAL_MINUTES", "60"))

# File Paths
BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
REPORTS_DIR = os.getenv("REPORTS_DIR", os.path.join(BASE_DIR, "reports"))
LOGS_DIR = os.getenv("LOGS_DIR", os.path.join(BASE_DIR, "logs"))

# Security
MAX_FILE_SIZE_MB = int(os.getenv("MAX_FILE_SIZE_MB", "25"))

# Logging Configuration
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class Settings:
    """Configuration settings class."""

    # Statement retrieval
    statement_endpoint: str = DEFAULT_STATEMENT_ENDPOINT
    account_id: str = ""
    session_cookie: Optional[str] = None
    fetch_timeout_seconds: int = 30
    lookback_days: int = 30
    user_agent: str = USER_AGENT

    # Notification
    webhook_url: Optional[str] = None
    webhook_timeout_seconds: int = 10
    max_embed_transactions: int = 10
    currency_code: str = "EUR"

    # State storage
    redis_url: str = "redis://localhost:6379/1"
    state_key_prefix: str = "statement_notifier"

    # Output Configuration
    log_level: str = "INFO"
    reports_dir: str = REPORTS_DIR
    logs_dir: str = LOGS_DIR

    # Processing Configuration
    max_retries: int = 3
    retry_delay_seconds: int = 60
    check_interval_minutes: int = 60
    max_file_size_mb: int = 25

    @classmethod
    def from_env(cls) -> "Settings":
        """Create Settings from environment variables."""
        return cls(
            statement_endpoint=os.getenv("STATEMENT_ENDPOINT", DEFAULT_STATEMENT_ENDPOINT),
            account_id=os.getenv("N26_ACCOUNT_ID", ""),
            session_cookie=os.getenv("SESSION_COOKIE"),
            fetch_timeout_seconds=int(os.getenv("FETCH_TIMEOUT_SECONDS", "30")),
            lookback_days=int(os.getenv("LOOKBACK_DAYS", "30")),
            user_agent=os.getenv("USER_AGENT", USER_AGENT),
            webhook_url=os.getenv("WEBHOOK_URL"),
            webhook_timeout_seconds=int(os.getenv("WEBHOOK_TIMEOUT_SECONDS", "10")),
            max_embed_transactions=int(os.getenv("MAX_EMBED_TRANSACTIONS", "10")),
            currency_code=os.getenv("CURRENCY_CODE", "EUR"),
            redis_url=os.getenv("REDIS_URL", "redis://localhost:6379/1"),
            state_key_prefix=os.getenv("STATE_KEY_PREFIX", "statement_notifier"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            reports_dir=os.getenv("REPORTS_DIR", REPORTS_DIR),
            logs_dir=os.getenv("LOGS_DIR", LOGS_DIR),
            max_retries=int(os.getenv("MAX_RETRIES", "3")),
            retry_delay_seconds=int(os.getenv("RETRY_DELAY_SECONDS", "60")),
            check_interval_minutes=int(os.getenv("CHECK_INTERVAL_MINUTES", "60")),
            max_file_size_mb=int(os.getenv("MAX_FILE_SIZE_MB", "25")),
        )

    def validate(self) -> bool:
        """Validate settings."""
        return (
            "$ACCOUNT_ID" in self.statement_endpoint and
            self.fetch_timeout_seconds > 0 and
            self.webhook_timeout_seconds > 0 and
            self.lookback_days > 0 and
            self.max_embed_transactions > 0 and
            self.max_retries >= 0 and
            self.check_interval_minutes > 0 and
            self.max_file_size_mb > 0
        )

    def get_log_level(self) -> str:
        """Get log level as string."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.log_level.upper() in valid_levels:
            return self.log_level.upper()
        return "INFO"

    def is_debug_enabled(self) -> bool:
        """Check if debug mode is enabled."""
        return self.log_level.upper() == "DEBUG"

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        """Create settings from dictionary."""
        return cls(**data)

    def clone(self) -> "Settings":
        """Create a copy of settings."""
        return self.from_dict(self.to_dict())

    def get_retry_delay(self, attempt: int) -> int:
        """Get retry delay for attempt number."""
        # Exponential backoff on top of the configured base delay
        return self.retry_delay_seconds * max(1, 2 ** (attempt - 1))


def ensure_directories() -> None:
    """Ensure all required directories exist."""
    directories = [REPORTS_DIR, LOGS_DIR]
    for directory in directories:
        os.makedirs(directory, exist_ok=True)
