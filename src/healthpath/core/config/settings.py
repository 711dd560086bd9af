"""Application settings loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """HealthPath analysis server configuration."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Server
    # Default to loopback; the server has no auth layer and returns health analyses.
    hp_host: str = "127.0.0.1"
    hp_port: int = 8001
    hp_log_level: str = "info"
    # Binding to a non-loopback host is refused unless this is set true.
    hp_allow_insecure_bind: bool = False

    # Storage (analysis data bank)
    db_path: str = "~/.healthpath/analyses.db"
    # Empty key disables persistence entirely.
    encryption_key: str = ""
    # JSON validation reports land here (validation_<run_id>.json)
    results_dir: str = "qa-results"

    # Validation harness
    validation_pass_threshold: float = 95.0
    validation_seed: int = 42
    validation_common_profiles: int = 500
    validation_workers: int = 1
    # Empty means the scenarios packaged under domains/health/qa/scenarios/
    validation_scenario_dir: str = ""

    # Engine
    default_display_name: str = "there"


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()
