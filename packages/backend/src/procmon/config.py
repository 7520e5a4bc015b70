"""Application configuration via environment variables.

Uses pydantic-settings to load config from env vars with PROCMON_ prefix.
No YAML files, no file-based config — just env vars (12-factor app style).

Learn: the mock record set and the execution simulator are tuned here too,
so a demo can be made reproducible (PROCMON_RANDOM_SEED) or quiet
(PROCMON_SIMULATION_ENABLED=false) without touching code.
"""

from typing import Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """All app configuration. Set via PROCMON_* env vars."""

    # Redis (empty string disables it, events stay in-process)
    redis_url: str = "redis://localhost:6379/0"

    # Auth
    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24
    bcrypt_rounds: int = 12

    # Demo accounts seeded into the user directory
    admin_username: str = "admin"
    admin_password: str = "admin123"
    viewer_username: str = "viewer"
    viewer_password: str = "viewer123"

    # Server
    environment: str = "development"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 5000

    # CORS
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    # Rate limiting
    rate_limit_rpm: int = 300  # requests per minute per IP
    rate_limit_auth_rpm: int = 10  # stricter limit for login/register

    # Mock data
    seed_count: int = 500
    seed_in_progress: int = 3
    random_seed: Optional[int] = None

    # Execution simulator
    simulation_enabled: bool = True
    simulation_interval_seconds: float = 10.0
    completion_probability: float = Field(0.1, ge=0.0, le=1.0)
    success_rate: float = Field(0.8, ge=0.0, le=1.0)

    model_config = {"env_prefix": "PROCMON_"}

    @model_validator(mode="after")
    def validate_production_settings(self):
        """Ensure sensitive defaults are changed in non-development environments."""
        if (
            self.environment != "development"
            and self.jwt_secret == "change-me-in-production"
        ):
            raise ValueError(
                "PROCMON_JWT_SECRET must be set to a secure value in "
                "non-development environments. Generate one with: "
                'python -c "import secrets; print(secrets.token_urlsafe(32))"'
            )
        return self


# Singleton — import this everywhere
settings = Settings()
