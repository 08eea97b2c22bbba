"""
Configuration management using pydantic-settings.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict

from sbertx.networks import NetworkType


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SBERTX_", env_file=".env", env_file_encoding="utf-8", case_sensitive=False
    )

    network: NetworkType = NetworkType.MAINNET
    log_level: str = "INFO"


def get_settings() -> Settings:
    return Settings()
