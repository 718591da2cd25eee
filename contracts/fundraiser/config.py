"""
Configuration for the fundraiser escrow program.

Values are read from environment variables (a local .env file is loaded
first). Defaults reproduce the on-chain constants.

Environment variables:
- FUNDRAISER_PROGRAM_ID: address the program's records are owned by
- FUNDRAISER_MAX_CONTRIBUTION_PERCENTAGE: cap on a single contribution
- FUNDRAISER_SECONDS_TO_DAYS: length of a campaign day in seconds
- FUNDRAISER_LOG_LEVEL: level for configure_logging
"""

import logging
import os
import sys
from dataclasses import dataclass

from algosdk import encoding
from dotenv import load_dotenv

from contracts.fundraiser.constants import (
    DEFAULT_PROGRAM_ID,
    MAX_CONTRIBUTION_PERCENTAGE,
    PERCENTAGE_SCALER,
    SECONDS_TO_DAYS,
)
from contracts.fundraiser.errors import ConfigurationError


LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


@dataclass(frozen=True)
class FundraiserConfig:
    """Tunable program parameters."""

    program_id: str = DEFAULT_PROGRAM_ID
    max_contribution_percentage: int = MAX_CONTRIBUTION_PERCENTAGE
    percentage_scaler: int = PERCENTAGE_SCALER
    seconds_to_days: int = SECONDS_TO_DAYS
    log_level: str = "INFO"

    def __post_init__(self):
        if not encoding.is_valid_address(self.program_id):
            raise ConfigurationError(f"Invalid program id: {self.program_id!r}")
        if not 0 < self.max_contribution_percentage <= self.percentage_scaler:
            raise ConfigurationError("Max contribution percentage must be in (0, scaler]")
        if self.seconds_to_days <= 0:
            raise ConfigurationError("Seconds per day must be positive")

    def max_contribution(self, amount_to_raise: int) -> int:
        """Largest single contribution allowed for a target."""
        return amount_to_raise * self.max_contribution_percentage // self.percentage_scaler


def _int_from_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from e


def load_config(dotenv_path: str | None = None) -> FundraiserConfig:
    """
    Build the program configuration from the environment.

    Args:
        dotenv_path: Optional .env file to load before reading variables

    Returns:
        FundraiserConfig with environment overrides applied
    """
    load_dotenv(dotenv_path=dotenv_path)

    return FundraiserConfig(
        program_id=os.getenv("FUNDRAISER_PROGRAM_ID") or DEFAULT_PROGRAM_ID,
        max_contribution_percentage=_int_from_env(
            "FUNDRAISER_MAX_CONTRIBUTION_PERCENTAGE", MAX_CONTRIBUTION_PERCENTAGE
        ),
        seconds_to_days=_int_from_env("FUNDRAISER_SECONDS_TO_DAYS", SECONDS_TO_DAYS),
        log_level=os.getenv("FUNDRAISER_LOG_LEVEL", "INFO").upper(),
    )


def configure_logging(level: str = "INFO") -> None:
    """Send program logs to stdout."""
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    # Replace handlers so repeated calls don't duplicate output
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
