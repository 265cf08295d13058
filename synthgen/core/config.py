"""Application configuration."""

from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Generator settings loaded from environment."""

    # API
    app_name: str = "Synthetic Record Generator"
    debug: bool = False
    log_level: str = "INFO"

    # Templates loaded from YAML at startup (in addition to the built-ins)
    templates_dir: str | None = None

    # Provenance
    generator_version: str = "1.0.0"

    # Sampling limits
    max_rejection_attempts: int = 1000
    max_poisson_iterations: int = 10_000

    # Formula limits
    formula_max_nodes: int = 256
    formula_max_depth: int = 32

    # Orchestration
    default_max_workers: int = 1
    history_size: int = 10
    strict_dependencies: bool = False

    model_config = {
        "env_prefix": "SYNTHGEN_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
