"""Configuration provider following Black Box Design principles."""
import os
from dataclasses import dataclass
from typing import Protocol, List


@dataclass
class APIConfig:
    """API configuration (bind address and port come from the config module)."""
    cors_origins: List[str]


@dataclass
class AuthConfig:
    """Authentication configuration."""
    bcrypt_rounds: int
    token_name: str

    def __post_init__(self):
        if self.bcrypt_rounds < 4 or self.bcrypt_rounds > 20:
            raise ValueError("bcrypt_rounds must be between 4 and 20")


class ConfigProvider(Protocol):
    """Protocol for configuration providers."""

    def get_api_config(self) -> APIConfig:
        """Get API configuration."""
        ...

    def get_auth_config(self) -> AuthConfig:
        """Get authentication configuration."""
        ...


class EnvConfigProvider:
    """Environment-based configuration provider."""

    def get_api_config(self) -> APIConfig:
        """Get API configuration from environment variables."""
        return APIConfig(
            cors_origins=[
                origin.strip()
                for origin in os.getenv("CORS_ORIGINS", "*").split(",")
                if origin.strip()
            ]
        )

    def get_auth_config(self) -> AuthConfig:
        """Get authentication configuration from environment variables."""
        return AuthConfig(
            bcrypt_rounds=int(os.getenv("BCRYPT_ROUNDS", "12")),
            token_name=os.getenv("TOKEN_NAME", "auth_token"),
        )
