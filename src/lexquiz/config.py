"""Configuration settings for the quiz engine."""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Define base directory
BASE_DIR = Path(__file__).parent.parent.parent

# Load environment variables from .env file
env_file = ".env.test" if os.getenv("ENV") == "test" else ".env"
load_dotenv(env_file)


# Learning settings
SESSION_SIZE = 5  # questions are generated for at most this many words per session
MIN_VOCABULARY = 4  # smaller collections cannot produce 4-option questions
DAILY_SERVE_CAP = 2  # ambient serves per headword per day before relaxation
HISTORY_DAYS = 5  # distinct dates kept in the ambient serve history
MASTERED_LEVEL = 4


@dataclass
class DatabaseSettings:
    """Database configuration settings."""
    url: str = os.getenv("DATABASE_URL", "sqlite:///lexquiz.db")
    echo: bool = os.getenv("DATABASE_ECHO", "false").lower() == "true"


@dataclass
class LoggingSettings:
    """Logging configuration settings."""
    level: str = os.getenv("LOG_LEVEL", "INFO")
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    dir: Optional[str] = os.getenv("LOG_DIR", None)
    rotation: str = os.getenv("LOG_ROTATION", "midnight")
    interval: int = int(os.getenv("LOG_INTERVAL", "1"))
    backup_count: int = int(os.getenv("LOG_BACKUP_COUNT", "7"))


def get_chat_id() -> Optional[int]:
    """Get the chat that receives ambient questions."""
    chat_id = os.getenv("TELEGRAM_CHAT_ID", "")
    return int(chat_id) if chat_id else None


@dataclass
class BotSettings:
    """Bot configuration settings."""
    token: str = os.getenv("TELEGRAM_BOT_TOKEN", "")
    chat_id: Optional[int] = field(default_factory=get_chat_id)


@dataclass
class LearningSettings:
    """Learning process settings."""
    session_size: int = int(os.getenv("SESSION_SIZE", str(SESSION_SIZE)))
    min_vocabulary: int = int(os.getenv("MIN_VOCABULARY", str(MIN_VOCABULARY)))
    daily_serve_cap: int = int(os.getenv("DAILY_SERVE_CAP", str(DAILY_SERVE_CAP)))
    history_days: int = int(os.getenv("HISTORY_DAYS", str(HISTORY_DAYS)))
    mastered_level: int = int(os.getenv("MASTERED_LEVEL", str(MASTERED_LEVEL)))


@dataclass
class AmbientSettings:
    """Ambient practice scheduling settings."""
    tick_seconds: int = int(os.getenv("AMBIENT_TICK_SECONDS", "60"))
    test_frequency: int = int(os.getenv("AMBIENT_TEST_FREQUENCY", "0"))
    test_cooldown_seconds: int = int(os.getenv("AMBIENT_TEST_COOLDOWN_SECONDS", "10"))
    default_frequency: int = int(os.getenv("AMBIENT_DEFAULT_FREQUENCY", "30"))


@dataclass
class MonitoringSettings:
    """Prometheus metrics settings."""
    port: int = int(os.getenv("METRICS_PORT", "0"))  # 0 disables the exporter


def get_database_settings() -> DatabaseSettings:
    """Get database settings."""
    return DatabaseSettings()


def get_logging_settings() -> LoggingSettings:
    """Get logging settings."""
    return LoggingSettings()


def get_bot_settings() -> BotSettings:
    """Get bot settings."""
    return BotSettings()


def get_learning_settings() -> LearningSettings:
    """Get learning settings."""
    return LearningSettings()


def get_ambient_settings() -> AmbientSettings:
    """Get ambient practice settings."""
    return AmbientSettings()


def get_monitoring_settings() -> MonitoringSettings:
    """Get monitoring settings."""
    return MonitoringSettings()


@dataclass
class Settings:
    """Main settings class that combines all configuration settings."""
    database: DatabaseSettings = field(default_factory=get_database_settings)
    logging: LoggingSettings = field(default_factory=get_logging_settings)
    bot: BotSettings = field(default_factory=get_bot_settings)
    learning: LearningSettings = field(default_factory=get_learning_settings)
    ambient: AmbientSettings = field(default_factory=get_ambient_settings)
    monitoring: MonitoringSettings = field(default_factory=get_monitoring_settings)

    def validate(self) -> None:
        """Validate settings and raise ValueError if invalid."""
        if self.learning.session_size < 1:
            raise ValueError("SESSION_SIZE must be positive")

        if self.learning.min_vocabulary < 1:
            raise ValueError("MIN_VOCABULARY must be positive")

        if self.learning.daily_serve_cap < 1:
            raise ValueError("DAILY_SERVE_CAP must be positive")

        if self.learning.history_days < 1:
            raise ValueError("HISTORY_DAYS must be positive")

        if self.ambient.tick_seconds < 1:
            raise ValueError("AMBIENT_TICK_SECONDS must be positive")

        if self.ambient.test_cooldown_seconds < 0:
            raise ValueError("AMBIENT_TEST_COOLDOWN_SECONDS cannot be negative")

        if self.ambient.default_frequency == self.ambient.test_frequency:
            raise ValueError("AMBIENT_DEFAULT_FREQUENCY cannot equal AMBIENT_TEST_FREQUENCY")

    def validate_bot(self) -> None:
        """Validate the settings needed to run the Telegram front-end."""
        if not self.bot.token:
            raise ValueError("TELEGRAM_BOT_TOKEN is required")
        if self.bot.chat_id is None:
            raise ValueError("TELEGRAM_CHAT_ID is required")


# Create global settings instance
settings = Settings()
settings.validate()
