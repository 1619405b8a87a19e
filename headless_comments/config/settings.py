"""Application settings using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="headless-comments", description="Application name")
    app_version: str = Field(default="1.1.1", description="Application version")
    environment: Literal["development", "staging", "production", "testing"] = Field(
        default="development", description="Environment name"
    )
    debug: bool = Field(default=True, description="Debug mode")

    # API Server
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")
    api_prefix: str = Field(
        default="/headless-comments/v1", description="Versioned route prefix"
    )

    # Site (the blog the comments belong to)
    site_home_url: str = Field(
        default="http://localhost", description="Public home URL of the blog"
    )
    site_permalink_template: str = Field(
        default="{home}/?p={post_id}",
        description="Permalink pattern, formatted with home and post_id",
    )
    site_locale: str = Field(default="en_US", description="Blog locale")
    site_charset: str = Field(default="UTF-8", description="Blog charset")
    site_timezone: str = Field(
        default="UTC", description="IANA timezone used for local comment dates"
    )

    # Redis (runtime options store + notification pub/sub)
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL",
    )
    redis_max_connections: int = Field(default=10, description="Max Redis connections")
    redis_socket_timeout: float = Field(default=5.0, description="Redis socket timeout")
    redis_socket_connect_timeout: float = Field(
        default=5.0, description="Redis connect timeout"
    )
    redis_retry_on_timeout: bool = Field(default=True, description="Retry on timeout")
    redis_health_check_interval: int = Field(
        default=30, description="Health check interval"
    )
    redis_options_key: str = Field(
        default="headless_comments:options",
        description="Redis hash holding runtime options",
    )

    # Cassandra
    cassandra_hosts: list[str] = Field(
        default=["localhost"], description="Cassandra hosts"
    )
    cassandra_port: int = Field(default=9042, description="Cassandra port")
    cassandra_keyspace: str = Field(
        default="headless_comments", description="Cassandra keyspace"
    )
    cassandra_username: str | None = Field(default=None, description="Cassandra user")
    cassandra_password: str | None = Field(
        default=None, description="Cassandra password"
    )
    cassandra_protocol_version: int = Field(default=4, description="Protocol version")
    cassandra_connect_timeout: float = Field(
        default=10.0, description="Connect timeout"
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="DEBUG", description="Log level"
    )
    log_format: Literal["json", "console"] = Field(
        default="console", description="Log format"
    )
    log_include_caller_info: bool = Field(
        default=True, description="Include caller info"
    )
    log_dir: str = Field(default="logs", description="Directory for log files")
    log_file_max_bytes: int = Field(
        default=10 * 1024 * 1024, description="Max size per log file (10MB default)"
    )
    log_file_backup_count: int = Field(
        default=5, description="Number of backup log files to keep"
    )
    log_requests: bool = Field(
        default=True, description="Log HTTP request start/finish"
    )
    log_exclude_paths: list[str] = Field(
        default=["/health", "/health/live", "/health/ready"],
        description="Paths to exclude from request logging",
    )

    # Runtime option defaults (seeded into the options store on startup)
    default_allowed_origins: str = Field(
        default="http://localhost:4321\nhttp://localhost",
        description="Newline-delimited origins seeded on first start",
    )
    default_use_spam_check: bool = Field(
        default=True, description="Spam checking toggle seeded on first start"
    )
    api_key_length: int = Field(default=32, description="Generated API key length")

    # Spam classifier (Akismet-compatible comment-check endpoint)
    spam_classifier_url: str | None = Field(
        default=None,
        description="comment-check endpoint, e.g. https://<key>.rest.akismet.com/1.1/comment-check",
    )
    spam_classifier_api_key: str | None = Field(
        default=None, description="Classifier API key (KEEP SECRET!)"
    )
    spam_classifier_timeout: float = Field(
        default=5.0, description="Classifier request timeout in seconds"
    )
    spam_classifier_user_agent: str = Field(
        default="headless-comments/1.1.1", description="User agent sent to classifier"
    )

    # Moderation heuristics
    moderation_require_approval: bool = Field(
        default=False, description="Hold every comment for manual approval"
    )
    moderation_require_previous_approval: bool = Field(
        default=True,
        description="Auto-approve only authors with a previously approved comment",
    )
    moderation_max_links: int = Field(
        default=2, description="Hold comments with more links than this"
    )
    moderation_hold_keys: list[str] = Field(
        default=[], description="Terms that hold a comment for moderation"
    )
    moderation_disallowed_keys: list[str] = Field(
        default=[], description="Terms that always send a comment to moderation"
    )

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing mode."""
        return self.environment == "testing"

    @property
    def spam_classifier_configured(self) -> bool:
        """Check if the external spam classifier can be reached."""
        return bool(self.spam_classifier_url and self.spam_classifier_api_key)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
