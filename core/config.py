# =============================================================================
# core/config.py  —  Runtime Settings
# =============================================================================
#
# The environment is read in exactly ONE place: Settings.from_env(), called
# once at process start (main.py).  Everything downstream receives explicit
# values — the client never looks at os.environ itself.
#
# VARIABLES:
#   API_KEY          (required)  Fastalert API key, sent as X-API-KEY
#   BASE_URL         (optional)  API base URL; empty means the default
#   REQUEST_TIMEOUT  (optional)  HTTP timeout in seconds (default 30)
# =============================================================================

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BASE_URL = "https://apialert.testflight.biz/api/v1"
DEFAULT_TIMEOUT = 30.0


class ConfigError(Exception):
    """Raised when the environment cannot produce a usable configuration."""


class Settings(BaseSettings):
    # Empty variables count as unset, so BASE_URL="" falls back to the default.
    model_config = SettingsConfigDict(
        env_ignore_empty=True,
        str_strip_whitespace=True,
        frozen=True,
    )

    api_key: str = Field(min_length=1)
    base_url: str = DEFAULT_BASE_URL
    request_timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)

    @field_validator("base_url")
    @classmethod
    def _blank_base_url_is_default(cls, value: str) -> str:
        return value or DEFAULT_BASE_URL

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables.

        Raises:
            ConfigError: API_KEY is missing or blank, or REQUEST_TIMEOUT is
                not a positive number.
        """
        try:
            return cls()
        except ValidationError as err:
            problems = []
            for error in err.errors():
                variable = ".".join(str(part) for part in error["loc"]).upper()
                if error["type"] == "missing":
                    problems.append(f"Missing required environment variable: {variable}")
                else:
                    problems.append(f"{variable}: {error['msg']}")
            raise ConfigError("; ".join(problems)) from None
