"""
Instruction encoding for the fundraiser program.

An instruction is a one-byte discriminant followed by a fixed-width
little-endian payload:

    0 Initialize         amount_to_raise: u64, duration: u8, bump: u8
    1 Contribute         amount: u64, fundraiser_bump: u8, contributor_bump: u8
    2 CheckContribution  (empty)
    3 Refund             (empty)
"""

import struct
from dataclasses import dataclass
from enum import IntEnum

from contracts.fundraiser.errors import InvalidInstructionData


class FundraiserInstruction(IntEnum):
    INITIALIZE = 0
    CONTRIBUTE = 1
    CHECK_CONTRIBUTION = 2
    REFUND = 3


def split_instruction(data: bytes) -> tuple[FundraiserInstruction, bytes]:
    """
    Separate the discriminant from the payload.

    Raises:
        InvalidInstructionData: Empty data or unknown discriminant
    """
    if not data:
        raise InvalidInstructionData("Instruction data is empty")
    try:
        instruction = FundraiserInstruction(data[0])
    except ValueError as e:
        raise InvalidInstructionData(f"Unknown instruction discriminant {data[0]}") from e
    return instruction, bytes(data[1:])


def _unpack_exact(layout: struct.Struct, data: bytes) -> tuple:
    if len(data) != layout.size:
        raise InvalidInstructionData(
            f"Expected {layout.size} payload bytes, got {len(data)}"
        )
    return layout.unpack(data)


@dataclass(frozen=True)
class InitializeIxData:
    amount_to_raise: int
    duration: int
    bump: int

    LAYOUT = struct.Struct("<QBB")

    @classmethod
    def unpack(cls, data: bytes) -> "InitializeIxData":
        return cls(*_unpack_exact(cls.LAYOUT, data))

    def encode(self) -> bytes:
        try:
            payload = self.LAYOUT.pack(self.amount_to_raise, self.duration, self.bump)
        except struct.error as e:
            raise InvalidInstructionData(str(e)) from e
        return bytes([FundraiserInstruction.INITIALIZE]) + payload


@dataclass(frozen=True)
class ContributeIxData:
    amount: int
    fundraiser_bump: int
    contributor_bump: int

    LAYOUT = struct.Struct("<QBB")

    @classmethod
    def unpack(cls, data: bytes) -> "ContributeIxData":
        return cls(*_unpack_exact(cls.LAYOUT, data))

    def encode(self) -> bytes:
        try:
            payload = self.LAYOUT.pack(self.amount, self.fundraiser_bump, self.contributor_bump)
        except struct.error as e:
            raise InvalidInstructionData(str(e)) from e
        return bytes([FundraiserInstruction.CONTRIBUTE]) + payload


def encode_check_contribution() -> bytes:
    return bytes([FundraiserInstruction.CHECK_CONTRIBUTION])


def encode_refund() -> bytes:
    return bytes([FundraiserInstruction.REFUND])


def expect_empty(data: bytes) -> None:
    """Payload-less instructions must not carry trailing bytes."""
    if data:
        raise InvalidInstructionData(f"Unexpected {len(data)} payload bytes")
