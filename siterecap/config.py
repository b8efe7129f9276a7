"""Runtime settings loaded from the environment."""
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, ValidationError

try:
    from .errors import ConfigurationError
except ImportError:
    from errors import ConfigurationError


class Settings(BaseModel):
    """Pipeline configuration."""
    anthropic_api_key: str | None = None
    model: str = "claude-haiku-4-5"
    max_concurrent: int = 4
    extract_timeout: float = 60.0
    aggregate_timeout: float = 120.0
    fetch_timeout: float = 30.0
    max_retries: int = 1
    data_dir: Path = Path("data")


_ENV_FIELDS = {
    "ANTHROPIC_API_KEY": "anthropic_api_key",
    "SITERECAP_MODEL": "model",
    "SITERECAP_MAX_CONCURRENT": "max_concurrent",
    "SITERECAP_EXTRACT_TIMEOUT": "extract_timeout",
    "SITERECAP_AGGREGATE_TIMEOUT": "aggregate_timeout",
    "SITERECAP_FETCH_TIMEOUT": "fetch_timeout",
    "SITERECAP_MAX_RETRIES": "max_retries",
    "SITERECAP_DATA_DIR": "data_dir",
}


def load_settings(**overrides) -> Settings:
    """Build settings from .env / environment, with keyword overrides on top."""
    load_dotenv()
    values = {
        field: os.environ[name]
        for name, field in _ENV_FIELDS.items()
        if os.environ.get(name)
    }
    values.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return Settings(**values)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e
