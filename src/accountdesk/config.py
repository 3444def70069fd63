"""ABOUTME: Configuration management for the accountdesk Flask application
ABOUTME: Loads environment variables and provides configuration objects for different environments"""

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from cachelib.file import FileSystemCache
from dotenv import load_dotenv
from redis import Redis

load_dotenv()


class InvalidConfig(Exception):
    """Error for when the config is not valid"""


SQLITE_DB_URI = "sqlite:///:memory:"
DEFAULT_MAILER_FROM_EMAIL = "no-reply@example.com"


@dataclass(slots=True, kw_only=True)
class PostgresCfg:
    user: str
    password: str
    host: str
    port: int
    db_name: str

    def to_url(self) -> str:
        return f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/{self.db_name}"

    @classmethod
    def from_env(cls, default_db_name: str = "accountdesk", user: str = "accountdesk") -> "PostgresCfg":
        host = os.environ.get("DB_HOST", "localhost")
        default_port = 54321 if host == "localhost" else 5432
        return PostgresCfg(
            user=os.environ.get("DB_USER", user),
            password=os.environ.get("DB_PASSWORD", "abc123"),
            host=host,
            port=int(os.environ.get("DB_PORT", default_port)),
            db_name=os.environ.get("DB_NAME", default_db_name),
        )


def get_db_uri() -> str:
    return os.environ.get("DB_URI", PostgresCfg.from_env().to_url())


@dataclass(slots=True, kw_only=True)
class RedisCfg:
    host: str
    port: int

    @classmethod
    def from_env(cls) -> "RedisCfg":
        host = os.environ.get("REDIS_HOST", "localhost")
        default_port = 63791 if host == "localhost" else 6379
        port = int(os.environ.get("REDIS_PORT", default_port))
        return RedisCfg(host=host, port=port)


@dataclass(slots=True, kw_only=True)
class EmailCfg:
    """Settings for outbound mail. `backend` is either "console" or "smtp"."""

    backend: str
    host: str
    port: int
    username: str
    password: str
    use_tls: bool
    from_email: str
    from_name: str

    @classmethod
    def from_env(cls) -> "EmailCfg":
        return EmailCfg(
            backend=os.environ.get("EMAIL_BACKEND", "console").lower().strip(),
            host=os.environ.get("SMTP_HOST", "localhost"),
            port=int(os.environ.get("SMTP_PORT", "1025")),
            username=os.environ.get("SMTP_USERNAME", ""),
            password=os.environ.get("SMTP_PASSWORD", ""),
            use_tls=to_bool(os.environ.get("SMTP_USE_TLS", "false"), context_str="SMTP_USE_TLS="),
            from_email=os.environ.get("MAILER_FROM_EMAIL", DEFAULT_MAILER_FROM_EMAIL),
            from_name=os.environ.get("MAILER_FROM_NAME", ""),
        )


def to_bool(value: str | None, context_str: str = "") -> bool:
    """
    Convert string to boolean. Valid options (after stripping whitespace and making lower-case)
    - False: "false", "no", "off", "0", None, ""
    - True: "true", "yes", "on", "1"

    The `context_str` is there for the error message, to help find the issue.
    """
    if value is None:
        return False
    value = value.lower().strip()
    if value in ("false", "no", "off", "0", ""):
        return False
    if value in ("true", "yes", "on", "1"):
        return True
    raise ValueError(
        f"Cannot convert '{context_str}{value}' to boolean. Valid values are: true/false, 1/0, yes/no, on/off (case-insensitive)"
    )


def bool_environ_get(key: str, default: str = "") -> bool:
    return to_bool(os.environ.get(key, default), context_str=f"{key}=")


def is_development() -> bool:
    return os.environ.get("FLASK_ENV", "development").lower().strip() == "development"


def get_log_level() -> int:
    level_name = os.environ.get("LOG_LEVEL", "INFO").upper().strip()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        raise InvalidConfig(f"Unknown LOG_LEVEL: {level_name}")
    return level


def should_log_all_requests() -> bool:
    return bool_environ_get("LOG_ALL_REQUESTS")


def get_supported_language_codes() -> list[str]:
    """Language codes from SUPPORTED_LANGUAGES, e.g. "en,cy". Never empty."""
    languages_env = os.environ.get("SUPPORTED_LANGUAGES", "en")
    languages = [lang.strip() for lang in languages_env.split(",") if lang.strip()]
    return languages or ["en"]


class FlaskBaseConfig:
    """Base configuration class that loads from environment variables."""

    WTF_CSRF_ENABLED = True
    TESTING = False

    def __init__(self) -> None:
        self.SQLALCHEMY_DATABASE_URI = get_db_uri()
        self.SECRET_KEY: str = os.environ.get("SECRET_KEY", "dev-secret-key-change-in-production")
        self.FLASK_ENV: str = os.environ.get("FLASK_ENV", "development")
        self.DEBUG: bool = to_bool(os.environ.get("DEBUG", "False"), context_str="DEBUG=")
        self.FORCE_HTTPS: bool = bool_environ_get("FORCE_HTTPS")

        # Mail configuration
        self.EMAIL_CFG = EmailCfg.from_env()
        self.MAILER_FROM_EMAIL: str = self.EMAIL_CFG.from_email

        # Babel/i18n configuration
        self.LANGUAGES = get_supported_language_codes()
        self.BABEL_DEFAULT_LOCALE = os.environ.get("BABEL_DEFAULT_LOCALE", "en")
        self.BABEL_DEFAULT_TIMEZONE = os.environ.get("BABEL_DEFAULT_TIMEZONE", "UTC")

        # Deployment configuration
        self.APPLICATION_ROOT = os.environ.get("APPLICATION_ROOT", "/")


class FlaskConfig(FlaskBaseConfig):
    def __init__(self) -> None:
        super().__init__()
        # Session configuration
        redis_cfg = RedisCfg.from_env()
        self.SESSION_TYPE = "redis"
        self.SESSION_REDIS = Redis(host=redis_cfg.host, port=redis_cfg.port)


class FlaskTestSQLiteConfig(FlaskBaseConfig):
    """Test configuration that uses SQLite in-memory database."""

    TESTING = True
    WTF_CSRF_ENABLED = False

    def __init__(self) -> None:
        super().__init__()
        self.SQLALCHEMY_DATABASE_URI = SQLITE_DB_URI
        self.SECRET_KEY = "test-secret-key-aockgn298zx081238"  # noqa: S105
        self.FLASK_ENV = "testing"
        self.FORCE_HTTPS = False

        # Use filesystem for session cache for testing
        self.SESSION_TYPE = "cachelib"
        session_file_dir = Path(tempfile.gettempdir()) / "accountdesk_flask_session"
        session_file_dir.mkdir(exist_ok=True)
        self.SESSION_CACHELIB = FileSystemCache(str(session_file_dir))


class FlaskProductionConfig(FlaskConfig):
    """Production configuration with stricter defaults."""

    def __init__(self) -> None:
        super().__init__()
        self.FLASK_ENV = "production"

        # Ensure production has proper secret key
        if self.SECRET_KEY == "dev-secret-key-change-in-production":  # noqa: S105
            raise InvalidConfig("SECRET_KEY must be set in production")


def get_config(config_name: str = "") -> FlaskBaseConfig:
    """Return the appropriate configuration based on FLASK_ENV or config_name."""
    env = config_name.strip() or os.environ.get("FLASK_ENV", "development")
    env = env.lower().strip()

    config_classes = {
        "development": FlaskConfig,
        "testing": FlaskTestSQLiteConfig,
        "production": FlaskProductionConfig,
    }

    # Fall back to development if unknown config
    config_cls = config_classes.get(env, FlaskConfig)
    return config_cls()


def get_templates_path() -> Path:
    return Path(__file__).parent / "templates"
