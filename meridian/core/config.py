"""
Meridian: Configuration Management

This module provides centralised configuration management for Meridian.
It loads configuration from environment variables (optionally via a .env
file), with strongly typed access via Pydantic BaseSettings.

Key responsibilities:
- Load and validate configuration from environment variables
- Provide typed configuration objects for risk limits and simulation
- Expose a cached global configuration accessor for convenience

External dependencies:
- pydantic: Data validation and settings management
- pydantic-settings: Environment variable integration for settings
- python-dotenv: Optional .env loading for local development

Thread safety: Thread-safe (configuration is immutable after initial load)

Author: Meridian Team
Created: 2026-10-18
Last Modified: 2026-10-18
Status: Development
Version: v0.1.0
"""

# ============================================================================
# Imports
# ============================================================================

from __future__ import annotations

from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# ============================================================================
# Data Models
# ============================================================================


class ConcentrationLimits(BaseModel):
    """Maximum recommended weights per grouping dimension.

    All values are fractions of total portfolio value. A bucket is
    flagged only when its weight is strictly greater than the limit.

    Attributes:
        max_position_weight: Cap for a single position.
        max_sector_weight: Cap for a single sector.
        max_asset_class_weight: Cap for a single asset class.
        max_broker_weight: Cap for assets held with a single broker.
        max_currency_weight: Cap for a single currency.
        max_country_weight: Cap for a single country.
    """

    max_position_weight: float = 0.10
    max_sector_weight: float = 0.25
    max_asset_class_weight: float = 0.40
    max_broker_weight: float = 0.50
    max_currency_weight: float = 0.60
    max_country_weight: float = 0.75


class SimulationConfig(BaseModel):
    """Monte Carlo defaults.

    Attributes:
        path_count: Default number of simulated paths.
        horizon_days: Default horizon in trading days.
        confidence_level: Default VaR/CVaR confidence level.
        seed: Optional seed for reproducible runs. ``None`` draws fresh
            entropy from the OS.
        max_workers: Upper bound on worker threads. ``None`` uses the
            number of available CPUs.
        batch_size: Paths generated per worker task.
        stress_path_count: Paths generated by scenario-biased stress runs.
        report_path_count: Paths used for the simulation embedded in a
            risk report.
        report_horizon_days: Horizon used for the embedded simulation.
    """

    path_count: int = 10000
    horizon_days: int = 252
    confidence_level: float = 0.95
    seed: Optional[int] = None
    max_workers: Optional[int] = None
    batch_size: int = 500
    stress_path_count: int = 1000
    report_path_count: int = 1000
    report_horizon_days: int = 21


class MeridianConfig(BaseSettings):
    """Main Meridian configuration loaded from environment variables.

    Environment variables use the following mapping by default:

    - LOG_LEVEL / LOG_FILE for logging
    - ENVIRONMENT for environment name (development/staging/production)
    - RISK_* for concentration limits and risk-report settings
    - MC_* / REPORT_SIMULATION_* for Monte Carlo defaults

    Environment variables take precedence over any other configuration
    source.
    """

    model_config = SettingsConfigDict(
        env_prefix="",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_file: str = Field(default="meridian.log", alias="LOG_FILE")

    # Environment
    environment: str = Field(default="development", alias="ENVIRONMENT")

    # Concentration limits
    risk_max_position_weight: float = Field(default=0.10, alias="RISK_MAX_POSITION_WEIGHT")
    risk_max_sector_weight: float = Field(default=0.25, alias="RISK_MAX_SECTOR_WEIGHT")
    risk_max_asset_class_weight: float = Field(
        default=0.40, alias="RISK_MAX_ASSET_CLASS_WEIGHT"
    )
    risk_max_broker_weight: float = Field(default=0.50, alias="RISK_MAX_BROKER_WEIGHT")
    risk_max_currency_weight: float = Field(default=0.60, alias="RISK_MAX_CURRENCY_WEIGHT")
    risk_max_country_weight: float = Field(default=0.75, alias="RISK_MAX_COUNTRY_WEIGHT")

    # Risk report
    risk_high_correlation_threshold: float = Field(
        default=0.70, alias="RISK_HIGH_CORRELATION_THRESHOLD"
    )
    risk_history_retention: int = Field(default=252, alias="RISK_HISTORY_RETENTION")
    risk_report_history_size: int = Field(default=100, alias="RISK_REPORT_HISTORY_SIZE")

    # Monte Carlo
    mc_path_count: int = Field(default=10000, alias="MC_PATH_COUNT")
    mc_horizon_days: int = Field(default=252, alias="MC_HORIZON_DAYS")
    mc_confidence_level: float = Field(default=0.95, alias="MC_CONFIDENCE_LEVEL")
    mc_seed: Optional[int] = Field(default=None, alias="MC_SEED")
    mc_max_workers: Optional[int] = Field(default=None, alias="MC_MAX_WORKERS")
    mc_batch_size: int = Field(default=500, alias="MC_BATCH_SIZE")
    mc_stress_path_count: int = Field(default=1000, alias="MC_STRESS_PATH_COUNT")
    report_simulation_paths: int = Field(default=1000, alias="REPORT_SIMULATION_PATHS")
    report_simulation_horizon_days: int = Field(
        default=21, alias="REPORT_SIMULATION_HORIZON_DAYS"
    )

    @property
    def concentration_limits(self) -> ConcentrationLimits:
        """Return concentration limits.

        Environment variables:
        - RISK_MAX_POSITION_WEIGHT
        - RISK_MAX_SECTOR_WEIGHT
        - RISK_MAX_ASSET_CLASS_WEIGHT
        - RISK_MAX_BROKER_WEIGHT
        - RISK_MAX_CURRENCY_WEIGHT
        - RISK_MAX_COUNTRY_WEIGHT
        """

        return ConcentrationLimits(
            max_position_weight=self.risk_max_position_weight,
            max_sector_weight=self.risk_max_sector_weight,
            max_asset_class_weight=self.risk_max_asset_class_weight,
            max_broker_weight=self.risk_max_broker_weight,
            max_currency_weight=self.risk_max_currency_weight,
            max_country_weight=self.risk_max_country_weight,
        )

    @property
    def simulation(self) -> SimulationConfig:
        """Return Monte Carlo configuration."""

        return SimulationConfig(
            path_count=self.mc_path_count,
            horizon_days=self.mc_horizon_days,
            confidence_level=self.mc_confidence_level,
            seed=self.mc_seed,
            max_workers=self.mc_max_workers,
            batch_size=self.mc_batch_size,
            stress_path_count=self.mc_stress_path_count,
            report_path_count=self.report_simulation_paths,
            report_horizon_days=self.report_simulation_horizon_days,
        )


# ============================================================================
# Public API
# ============================================================================


def load_config(env_file: Optional[Path] = None) -> MeridianConfig:
    """Load Meridian configuration.

    For local development this function will attempt to load a `.env` file
    from the current working directory if one is present. Environment
    variables always take precedence over values from `.env`.

    Args:
        env_file: Optional explicit path to a `.env` file. If omitted,
            the function will look for `.env` in the current working
            directory.

    Returns:
        A fully populated :class:`MeridianConfig` instance.

    Raises:
        FileNotFoundError: If an explicit ``env_file`` is provided but
            does not exist.
    """

    if env_file is not None:
        if not env_file.exists():
            msg = f"Environment file not found: {env_file}"
            raise FileNotFoundError(msg)
        # An explicit env_file overrides existing values so that tests and
        # local runs can reliably control configuration.
        load_dotenv(env_file, override=True)
    else:
        default_env = Path(".env")
        if default_env.exists():
            load_dotenv(default_env)

    return MeridianConfig()  # type: ignore[call-arg]


_global_config: Optional[MeridianConfig] = None


def get_config() -> MeridianConfig:
    """Return the global Meridian configuration singleton.

    The configuration is loaded on first access (lazy loading) and cached
    for subsequent calls.

    Returns:
        A cached :class:`MeridianConfig` instance.
    """

    global _global_config
    if _global_config is None:
        _global_config = load_config()
    return _global_config
