"""Configuration management."""
import os
from urllib.parse import urlparse
from dotenv import load_dotenv

from bookshelf.errors import ConfigError

# Load environment variables
load_dotenv()

BACKENDS = ("postgres", "rest")
PLACEHOLDER = "your_supabase"


class Config:
    """Application configuration, read from the environment on construction."""

    def __init__(self):
        self.BACKEND = os.getenv("BOOKSHELF_BACKEND", "postgres").lower()

        # Database
        self.DB_HOST = os.getenv("DB_HOST", "localhost")
        self.DB_PORT = os.getenv("DB_PORT", "5432")
        self.DB_NAME = os.getenv("DB_NAME", "booksdb")
        self.DB_USER = os.getenv("DB_USER", "postgres")
        self.DB_PASSWORD = os.getenv("DB_PASSWORD", "")
        self.DB_MIN_CONN = os.getenv("DB_MIN_CONN", "1")
        self.DB_MAX_CONN = os.getenv("DB_MAX_CONN", "10")

        # PostgREST / Supabase
        self.SUPABASE_URL = os.getenv("SUPABASE_URL")
        self.SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY")

        # Defaults
        self.DEFAULT_TIMEOUT = os.getenv("DEFAULT_TIMEOUT", "10")

    @property
    def DATABASE_URL(self):
        """Build PostgreSQL connection string."""
        return f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    def validate(self) -> "Config":
        """
        Check settings once at startup.

        Returns:
            self, with numeric settings converted

        Raises:
            ConfigError: describing the first invalid setting
        """
        if self.BACKEND not in BACKENDS:
            raise ConfigError(
                f"Unknown BOOKSHELF_BACKEND {self.BACKEND!r}; expected one of {', '.join(BACKENDS)}"
            )

        self.DEFAULT_TIMEOUT = self._number("DEFAULT_TIMEOUT", float)
        self.DB_MIN_CONN = self._number("DB_MIN_CONN", int)
        self.DB_MAX_CONN = self._number("DB_MAX_CONN", int)

        if self.BACKEND == "rest":
            self._validate_rest()
        return self

    def _number(self, name: str, kind):
        value = getattr(self, name)
        try:
            return kind(value)
        except (TypeError, ValueError):
            raise ConfigError(f"{name} must be a number, got {value!r}") from None

    def _validate_rest(self):
        if not self.SUPABASE_URL or not self.SUPABASE_ANON_KEY:
            raise ConfigError(
                "Missing Supabase settings. Set SUPABASE_URL and SUPABASE_ANON_KEY in your .env file."
            )

        if PLACEHOLDER in self.SUPABASE_URL or PLACEHOLDER in self.SUPABASE_ANON_KEY:
            raise ConfigError(
                "Replace the placeholder SUPABASE_URL / SUPABASE_ANON_KEY values in your .env file "
                "with your project's credentials."
            )

        parsed = urlparse(self.SUPABASE_URL)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ConfigError(f"Invalid SUPABASE_URL format: {self.SUPABASE_URL!r}")
