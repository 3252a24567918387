"""
Centralized Configuration Management for alertops

Uses Pydantic Settings for type-safe environment variable loading.
Values come from the process environment or a local .env file.
"""

from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


load_dotenv()


class OllamaConfig(BaseSettings):
    """Model backend (Ollama) configuration."""

    url: Optional[str] = Field(
        default=None,
        description="Ollama base URL (OLLAMA_URL)"
    )
    host: Optional[str] = Field(
        default=None,
        description="Ollama host[:port] (OLLAMA_HOST), used when OLLAMA_URL is unset"
    )
    model: str = Field(
        default="llama3",
        description="Preferred chat model"
    )
    health_timeout: float = Field(
        default=5.0,
        gt=0,
        description="Health check / model catalogue timeout in seconds"
    )
    chat_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Per-model chat completion timeout in seconds"
    )
    temperature: float = Field(
        default=0.1,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for parsing calls"
    )

    model_config = SettingsConfigDict(
        env_prefix="OLLAMA_",
        case_sensitive=False
    )

    @property
    def base_url(self) -> str:
        """Resolve base URL: OLLAMA_URL > OLLAMA_HOST > localhost default."""
        resolved = self.url or self.host or "http://localhost:11434"
        # OLLAMA_HOST is often given as 'ollama:11434' without a scheme
        if not resolved.startswith("http"):
            resolved = f"http://{resolved}"
        return resolved.rstrip("/")


class ParserConfig(BaseSettings):
    """Parser Engine configuration."""

    disabled_alert_types: str = Field(
        default="",
        description="Comma separated alert types that must never be returned"
    )

    model_config = SettingsConfigDict(
        env_prefix="PARSER_",
        case_sensitive=False
    )

    @property
    def denylist(self) -> frozenset[str]:
        return frozenset(
            item.strip() for item in self.disabled_alert_types.split(",") if item.strip()
        )


class Config(BaseSettings):
    """Main application configuration."""

    policies_path: Optional[str] = Field(
        default=None,
        description="Override location of the policies JSON file"
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )

    ollama: OllamaConfig = Field(default_factory=OllamaConfig)
    parser: ParserConfig = Field(default_factory=ParserConfig)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v_upper

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def reload_config() -> Config:
    """Reload configuration from environment (useful for testing)."""
    global _config
    _config = Config()
    return _config
