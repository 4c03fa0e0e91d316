"""
Meridian: Tests for Configuration Management

Test suite for ``meridian.core.config``. Covers:
- Default configuration values
- Environment variable overrides
- .env loading behaviour
- Typed sub-configuration properties
"""

from __future__ import annotations

from pathlib import Path

import pytest

from meridian.core.config import (
    ConcentrationLimits,
    MeridianConfig,
    SimulationConfig,
    get_config,
    load_config,
)


class TestMeridianConfig:
    """Tests for the MeridianConfig settings model."""

    def test_default_values(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Defaults should match the documented engine thresholds."""

        for var in ("LOG_LEVEL", "ENVIRONMENT", "RISK_MAX_POSITION_WEIGHT", "MC_PATH_COUNT"):
            monkeypatch.delenv(var, raising=False)

        config = MeridianConfig()

        assert config.log_level.upper() == "INFO"
        assert config.environment == "development"
        assert config.risk_max_position_weight == pytest.approx(0.10)
        assert config.risk_max_country_weight == pytest.approx(0.75)
        assert config.risk_report_history_size == 100
        assert config.mc_path_count == 10000
        assert config.mc_seed is None

    def test_env_var_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Environment variables must override default values."""

        monkeypatch.setenv("RISK_MAX_SECTOR_WEIGHT", "0.3")
        monkeypatch.setenv("MC_SEED", "42")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")

        config = MeridianConfig()

        assert config.risk_max_sector_weight == pytest.approx(0.3)
        assert config.mc_seed == 42
        assert config.log_level.upper() == "DEBUG"

    def test_sub_config_properties(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Helper properties should return typed pydantic models."""

        monkeypatch.setenv("RISK_MAX_BROKER_WEIGHT", "0.45")
        monkeypatch.setenv("REPORT_SIMULATION_PATHS", "250")

        config = MeridianConfig()

        limits = config.concentration_limits
        assert isinstance(limits, ConcentrationLimits)
        assert limits.max_broker_weight == pytest.approx(0.45)

        sim = config.simulation
        assert isinstance(sim, SimulationConfig)
        assert sim.report_path_count == 250
        assert sim.batch_size == config.mc_batch_size


class TestLoadConfig:
    """Tests for the top-level load_config function."""

    def test_load_from_explicit_env_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """An explicit env_file should be loaded when it exists."""

        monkeypatch.delenv("MC_HORIZON_DAYS", raising=False)
        monkeypatch.delenv("RISK_HISTORY_RETENTION", raising=False)
        env_path = tmp_path / ".env.test"
        env_path.write_text("MC_HORIZON_DAYS=21\nRISK_HISTORY_RETENTION=30\n")

        config = load_config(env_file=env_path)

        assert config.mc_horizon_days == 21
        assert config.risk_history_retention == 30

        # load_dotenv writes into os.environ; drop the values again.
        monkeypatch.delenv("MC_HORIZON_DAYS", raising=False)
        monkeypatch.delenv("RISK_HISTORY_RETENTION", raising=False)

    def test_missing_explicit_env_file_raises(self, tmp_path: Path) -> None:
        """A missing explicit env file should raise FileNotFoundError."""

        missing = tmp_path / "does_not_exist.env"
        with pytest.raises(FileNotFoundError):
            load_config(env_file=missing)


class TestGetConfigSingleton:
    """Tests for the get_config singleton accessor."""

    def test_get_config_returns_singleton(self) -> None:
        """get_config should always return the same instance within a process."""

        config_1 = get_config()
        config_2 = get_config()

        assert config_1 is config_2
        assert isinstance(config_1.log_file, str)
