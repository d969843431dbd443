from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from metaserv._version import __version__


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
        frozen=True,
    )

    service_name: str = Field(default="goserv", alias="SERVICE_NAME")
    service_version: str = Field(default=__version__, alias="SERVICE_VERSION")
    dependency_url: str = Field(default="", alias="DEPENDENCY_URL")
    port: str = Field(default="8080", alias="PORT")

    host: str = Field(default="0.0.0.0", alias="HOST")
    dependency_timeout_seconds: float = Field(default=5.0, alias="DEPENDENCY_TIMEOUT_SECONDS")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    enable_metrics_endpoint: bool = Field(default=False, alias="ENABLE_METRICS_ENDPOINT")

    @property
    def dependency_enabled(self) -> bool:
        return bool(self.dependency_url)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
