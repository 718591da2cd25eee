"""
Tests for program configuration.

Tests cover:
- Defaults and environment overrides
- .env loading
- Validation of bad values
- Programs running under a non-default configuration
"""

import logging

import pytest
from algosdk import account

from contracts.fundraiser.config import FundraiserConfig, configure_logging, load_config
from contracts.fundraiser.constants import DEFAULT_PROGRAM_ID
from contracts.fundraiser.errors import ConfigurationError, ContributionTooBig


ENV_VARS = [
    "FUNDRAISER_PROGRAM_ID",
    "FUNDRAISER_MAX_CONTRIBUTION_PERCENTAGE",
    "FUNDRAISER_SECONDS_TO_DAYS",
    "FUNDRAISER_LOG_LEVEL",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Unset program variables; anything a .env file adds is removed afterwards."""
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return tmp_path


class TestLoadConfig:
    """Test suite for reading configuration from the environment."""

    def test_defaults(self, clean_env):
        # Act
        config = load_config(dotenv_path=str(clean_env / "missing.env"))

        # Assert
        assert config == FundraiserConfig()
        assert config.program_id == DEFAULT_PROGRAM_ID
        assert config.max_contribution(1_000_000) == 100_000
        assert config.seconds_to_days == 86_400

    def test_environment_overrides(self, clean_env, monkeypatch):
        # Arrange
        program_id = account.generate_account()[1]
        monkeypatch.setenv("FUNDRAISER_PROGRAM_ID", program_id)
        monkeypatch.setenv("FUNDRAISER_MAX_CONTRIBUTION_PERCENTAGE", "25")
        monkeypatch.setenv("FUNDRAISER_LOG_LEVEL", "debug")

        # Act
        config = load_config(dotenv_path=str(clean_env / "missing.env"))

        # Assert
        assert config.program_id == program_id
        assert config.max_contribution(1_000_000) == 250_000
        assert config.log_level == "DEBUG"

    def test_dotenv_file(self, clean_env):
        # Arrange
        env_file = clean_env / ".env"
        env_file.write_text("FUNDRAISER_SECONDS_TO_DAYS=60\n")

        # Act
        config = load_config(dotenv_path=str(env_file))

        # Assert
        assert config.seconds_to_days == 60

    def test_non_integer_rejected(self, clean_env, monkeypatch):
        monkeypatch.setenv("FUNDRAISER_SECONDS_TO_DAYS", "one day")

        with pytest.raises(ConfigurationError, match="FUNDRAISER_SECONDS_TO_DAYS"):
            load_config(dotenv_path=str(clean_env / "missing.env"))

    def test_invalid_program_id_rejected(self):
        with pytest.raises(ConfigurationError, match="program id"):
            FundraiserConfig(program_id="not-an-address")

    @pytest.mark.parametrize("percentage", [0, -5, 101])
    def test_percentage_out_of_range_rejected(self, percentage):
        with pytest.raises(ConfigurationError):
            FundraiserConfig(max_contribution_percentage=percentage)

    def test_configure_logging_replaces_handlers(self):
        """Test that repeated setup leaves a single handler."""
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            configure_logging("DEBUG")
            configure_logging("WARNING")

            assert len(root.handlers) == 1
            assert root.level == logging.WARNING
        finally:
            for handler in root.handlers[:]:
                root.removeHandler(handler)
            for handler in saved_handlers:
                root.addHandler(handler)
            root.setLevel(saved_level)


class TestConfiguredCap:
    """A program whose contribution cap is 20% of the target."""

    @pytest.fixture
    def config(self):
        return FundraiserConfig(max_contribution_percentage=20)

    def test_higher_cap_allows_larger_contribution(self, campaign):
        backer = campaign.add_backer()

        campaign.contribute(backer, 200_000)

        assert campaign.contributor_state(backer).amount == 200_000

    def test_higher_cap_still_enforced(self, campaign):
        backer = campaign.add_backer()

        with pytest.raises(ContributionTooBig):
            campaign.contribute(backer, 200_001)


class TestCustomProgramId:
    """A program deployed under its own id."""

    @pytest.fixture
    def config(self):
        return FundraiserConfig(program_id=account.generate_account()[1])

    def test_records_owned_by_configured_program(self, campaign, config):
        backer = campaign.add_backer()

        campaign.contribute(backer, 10_000)

        assert campaign.ledger.get_account(campaign.fundraiser).owner == config.program_id
        assert campaign.ledger.get_account(campaign.record_key(backer)).owner == config.program_id
