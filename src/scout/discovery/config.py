"""Discovery configuration.

Uses BaseModel (not BaseSettings) like the provider config; `from_env` reads
explicit SCOUT_* overrides so the CLI and tests share one construction path.
"""

import os

from pydantic import BaseModel, ConfigDict, Field, model_validator

_ENV_PREFIX = "SCOUT_"


class DiscoveryConfig(BaseModel):
    """Tunables for one discovery orchestrator."""

    min_jobs: int = Field(default=2, ge=1)
    max_jobs: int = Field(default=6, ge=1)
    max_job_id_length: int = Field(default=48, ge=8)
    max_attempts: int = Field(default=2, ge=1, description="Attempts per analysis job")
    job_timeout_seconds: float = Field(default=600.0, gt=0)
    keyword_window: int = Field(
        default=42, ge=0, description="Max characters between a noun and verb in change hints"
    )
    log_chunk_chars: int = Field(default=220, ge=20)
    planner_max_steps: int = Field(default=8, ge=1)
    analysis_max_steps: int = Field(default=12, ge=1)
    synthesis_max_steps: int = Field(default=20, ge=1)
    profile_dir: str = ".scout"
    profile_file: str = "profile.json"

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _bounds_are_ordered(self) -> "DiscoveryConfig":
        if self.min_jobs > self.max_jobs:
            raise ValueError("min_jobs must not exceed max_jobs")
        return self

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "DiscoveryConfig":
        """Build config from SCOUT_<FIELD> environment variables.

        Unknown or unset variables are ignored; values are validated by pydantic.

        Args:
            environ: Mapping to read instead of os.environ

        Returns:
            DiscoveryConfig with overrides applied
        """
        env = os.environ if environ is None else environ
        overrides: dict[str, str] = {}
        for name in cls.model_fields:
            value = env.get(f"{_ENV_PREFIX}{name.upper()}")
            if value is not None and value != "":
                overrides[name] = value
        return cls.model_validate(overrides)
