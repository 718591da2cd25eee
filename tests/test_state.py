"""
Tests for the fundraiser record layouts.

Tests cover:
- Fixed record sizes
- Checked loading (missing, foreign, mis-sized accounts)
- Checked u64 arithmetic
"""

import pytest
from algosdk import account

from contracts.fundraiser.constants import DEFAULT_PROGRAM_ID, SYSTEM_PROGRAM_ID, U64_MAX
from contracts.fundraiser.errors import (
    ArithmeticOverflow,
    IllegalOwner,
    InvalidAccountData,
    UninitializedAccount,
)
from contracts.fundraiser.runtime import AccountInfo
from contracts.fundraiser.state import Contributor, Fundraiser, checked_add


def _address() -> str:
    return account.generate_account()[1]


def _fundraiser() -> Fundraiser:
    return Fundraiser(
        owner=_address(),
        mint=_address(),
        amount_to_raise=1_000_000,
        current_amount=250_000,
        time_started=1_700_000_000,
        duration=30,
        bump=254,
    )


class TestRecords:
    """Test suite for record encoding and loading."""

    def test_record_sizes(self):
        """Test that records have fixed, versionless sizes."""
        assert Fundraiser.size() == 90
        assert Contributor.size() == 9

    def test_fundraiser_layout(self):
        """Test that fields land at their documented offsets."""
        # Arrange
        state = _fundraiser()

        # Act
        data = state.pack()

        # Assert
        assert len(data) == 90
        assert int.from_bytes(data[64:72], "little") == 1_000_000
        assert int.from_bytes(data[72:80], "little") == 250_000
        assert data[88] == 30
        assert data[89] == 254
        assert Fundraiser.unpack(data) == state

    def test_load_and_store(self):
        """Test that a stored record loads back through the checked path."""
        # Arrange
        state = Contributor(amount=42_000, bump=253)
        info = AccountInfo(key=_address(), owner=DEFAULT_PROGRAM_ID, data=bytearray(Contributor.size()))

        # Act
        state.store(info)
        loaded = Contributor.load(info, DEFAULT_PROGRAM_ID)

        # Assert
        assert loaded == state

    def test_load_missing_account(self):
        """Test that an empty account is reported as missing."""
        info = AccountInfo(key=_address(), owner=SYSTEM_PROGRAM_ID)

        with pytest.raises(UninitializedAccount):
            Contributor.load(info, DEFAULT_PROGRAM_ID)

    def test_load_foreign_account(self):
        """Test that records owned by another program are rejected."""
        info = AccountInfo(
            key=_address(), owner=SYSTEM_PROGRAM_ID, data=bytearray(_fundraiser().pack())
        )

        with pytest.raises(IllegalOwner):
            Fundraiser.load(info, DEFAULT_PROGRAM_ID)

    def test_load_wrong_size(self):
        """Test that a record of the wrong size is rejected."""
        info = AccountInfo(key=_address(), owner=DEFAULT_PROGRAM_ID, data=bytearray(16))

        with pytest.raises(InvalidAccountData):
            Contributor.load(info, DEFAULT_PROGRAM_ID)

    def test_store_into_wrong_size(self):
        """Test that a record is never written into an account of another size."""
        info = AccountInfo(key=_address(), owner=DEFAULT_PROGRAM_ID, data=bytearray(Contributor.size()))

        with pytest.raises(InvalidAccountData):
            _fundraiser().store(info)

    def test_pack_rejects_out_of_range_values(self):
        """Test that values wider than their fields are rejected."""
        with pytest.raises(InvalidAccountData):
            Contributor(amount=U64_MAX + 1, bump=255).pack()

    def test_elapsed_days_rounds_down(self):
        """Test that only whole days count."""
        state = _fundraiser()

        assert state.elapsed_days(state.time_started + 86_399, 86_400) == 0
        assert state.elapsed_days(state.time_started + 86_400, 86_400) == 1
        assert state.elapsed_days(state.time_started + 5 * 86_400 + 1, 86_400) == 5


class TestCheckedAdd:
    """Test suite for u64 accumulation."""

    def test_checked_add_at_limit(self):
        assert checked_add(U64_MAX - 1, 1) == U64_MAX

    def test_checked_add_overflow(self):
        with pytest.raises(ArithmeticOverflow):
            checked_add(U64_MAX, 1)
