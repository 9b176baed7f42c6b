"""Configuration settings for the analytics engine."""
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
env_file = ".env.test" if os.getenv("ENV") == "test" else ".env"
load_dotenv(env_file)


# Analytics windows
MONTHLY_LOOKBACK_MONTHS = 6
STUDY_TIME_LOOKBACK_DAYS = 7
ATTEMPT_HISTORY_DAYS = 30  # rolling window kept in attemptHistory
DELETE_BATCH_SIZE = 450  # Firestore caps a batch at 500 writes


@dataclass
class CacheSettings:
    """Analytics cache settings."""
    ttl_seconds: int = int(os.getenv("CACHE_TTL_SECONDS", "3600"))
    database_url: str = os.getenv("CACHE_DATABASE_URL", "sqlite:///prepflight_cache.db")
    echo: bool = os.getenv("CACHE_DATABASE_ECHO", "false").lower() == "true"


@dataclass
class FirebaseSettings:
    """Firebase connection settings."""
    credentials: Optional[str] = os.getenv("FIREBASE_CREDENTIALS")
    project_id: Optional[str] = os.getenv("FIREBASE_PROJECT_ID")
    questions_collection: str = os.getenv("FIRESTORE_QUESTIONS_COLLECTION", "questions")
    progress_collection: str = os.getenv("FIRESTORE_PROGRESS_COLLECTION", "progress")


@dataclass
class AnalyticsSettings:
    """Analytics computation settings."""
    monthly_lookback_months: int = int(
        os.getenv("ANALYTICS_MONTHLY_LOOKBACK_MONTHS", str(MONTHLY_LOOKBACK_MONTHS))
    )
    study_time_lookback_days: int = int(
        os.getenv("ANALYTICS_STUDY_TIME_LOOKBACK_DAYS", str(STUDY_TIME_LOOKBACK_DAYS))
    )
    attempt_history_days: int = int(
        os.getenv("ANALYTICS_ATTEMPT_HISTORY_DAYS", str(ATTEMPT_HISTORY_DAYS))
    )
    delete_batch_size: int = int(os.getenv("ANALYTICS_DELETE_BATCH_SIZE", str(DELETE_BATCH_SIZE)))


@dataclass
class LoggingSettings:
    """Logging configuration settings."""
    level: str = os.getenv("LOG_LEVEL", "INFO")
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    dir: Optional[str] = os.getenv("LOG_DIR", None)
    rotation: str = os.getenv("LOG_ROTATION", "midnight")
    interval: int = int(os.getenv("LOG_INTERVAL", "1"))
    backup_count: int = int(os.getenv("LOG_BACKUP_COUNT", "7"))


@dataclass
class MonitoringSettings:
    """Prometheus exporter settings."""
    enabled: bool = os.getenv("METRICS_ENABLED", "false").lower() == "true"
    port: int = int(os.getenv("METRICS_PORT", "9090"))


def get_cache_settings() -> CacheSettings:
    """Get cache settings."""
    return CacheSettings()


def get_firebase_settings() -> FirebaseSettings:
    """Get Firebase settings."""
    return FirebaseSettings()


def get_analytics_settings() -> AnalyticsSettings:
    """Get analytics settings."""
    return AnalyticsSettings()


def get_logging_settings() -> LoggingSettings:
    """Get logging settings."""
    return LoggingSettings()


def get_monitoring_settings() -> MonitoringSettings:
    """Get monitoring settings."""
    return MonitoringSettings()


@dataclass
class Settings:
    """Main settings class that combines all configuration settings."""
    cache: CacheSettings = field(default_factory=get_cache_settings)
    firebase: FirebaseSettings = field(default_factory=get_firebase_settings)
    analytics: AnalyticsSettings = field(default_factory=get_analytics_settings)
    logging: LoggingSettings = field(default_factory=get_logging_settings)
    monitoring: MonitoringSettings = field(default_factory=get_monitoring_settings)

    def validate(self) -> None:
        """Validate settings and raise ValueError if invalid."""
        if self.cache.ttl_seconds <= 0:
            raise ValueError("CACHE_TTL_SECONDS must be positive")

        if self.analytics.monthly_lookback_months < 1:
            raise ValueError("ANALYTICS_MONTHLY_LOOKBACK_MONTHS must be positive")

        if self.analytics.study_time_lookback_days < 1:
            raise ValueError("ANALYTICS_STUDY_TIME_LOOKBACK_DAYS must be positive")

        if self.analytics.attempt_history_days < 1:
            raise ValueError("ANALYTICS_ATTEMPT_HISTORY_DAYS must be positive")

        if not 1 <= self.analytics.delete_batch_size <= 500:
            raise ValueError("ANALYTICS_DELETE_BATCH_SIZE must be between 1 and 500")


# Create global settings instance
settings = Settings()
settings.validate()
