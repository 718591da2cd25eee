"""
Tests for instruction encoding.

Tests cover:
- Discriminant routing
- Fixed-width little-endian payloads
- Rejection of malformed data
"""

import pytest

from contracts.fundraiser.errors import InvalidInstructionData
from contracts.fundraiser.instruction import (
    ContributeIxData,
    FundraiserInstruction,
    InitializeIxData,
    encode_refund,
    expect_empty,
    split_instruction,
)


class TestInstructions:
    """Test suite for instruction data."""

    def test_discriminants(self):
        assert [i.value for i in FundraiserInstruction] == [0, 1, 2, 3]

    def test_contribute_layout(self):
        """Test the documented contribute payload layout."""
        # Act
        data = ContributeIxData(amount=100_000, fundraiser_bump=254, contributor_bump=251).encode()

        # Assert
        assert data == bytes([1]) + (100_000).to_bytes(8, "little") + bytes([254, 251])

    def test_initialize_decodes(self):
        """Test that an encoded initialize instruction splits and decodes."""
        # Arrange
        data = InitializeIxData(amount_to_raise=5_000_000, duration=14, bump=250).encode()

        # Act
        instruction, payload = split_instruction(data)

        # Assert
        assert instruction is FundraiserInstruction.INITIALIZE
        assert InitializeIxData.unpack(payload) == InitializeIxData(5_000_000, 14, 250)

    def test_unknown_discriminant(self):
        with pytest.raises(InvalidInstructionData, match="Unknown"):
            split_instruction(bytes([9, 0, 0]))

    def test_empty_data(self):
        with pytest.raises(InvalidInstructionData, match="empty"):
            split_instruction(b"")

    @pytest.mark.parametrize("length", [0, 9, 11])
    def test_payload_must_be_exact_width(self, length):
        with pytest.raises(InvalidInstructionData):
            ContributeIxData.unpack(bytes(length))

    def test_out_of_range_field(self):
        """Test that a bump wider than one byte can't be encoded."""
        with pytest.raises(InvalidInstructionData):
            ContributeIxData(amount=1, fundraiser_bump=256, contributor_bump=0).encode()

    def test_refund_has_no_payload(self):
        instruction, payload = split_instruction(encode_refund())

        assert instruction is FundraiserInstruction.REFUND
        expect_empty(payload)

    def test_trailing_bytes_rejected(self):
        with pytest.raises(InvalidInstructionData):
            expect_empty(b"\x00")
