"""
Fixed-layout records owned by the fundraiser program.

Layouts (little-endian, no padding, versionless):

    Fundraiser (90 bytes)
        owner           32  address bytes of the campaign creator
        mint            32  address bytes of the accepted token type
        amount_to_raise  8  u64 target in token base units
        current_amount   8  u64 gross lifetime contributions
        time_started     8  i64 unix timestamp of creation
        duration         1  u8 campaign length in days
        bump             1  u8 derivation bump of the record's address

    Contributor (9 bytes)
        amount           8  u64 cumulative deposit of one contributor
        bump             1  u8 derivation bump of the record's address

Records are only ever read through `load`, which checks ownership and size
before decoding, and written back through `store`.
"""

import struct
from dataclasses import dataclass

from algosdk import encoding

from contracts.fundraiser.constants import U64_MAX
from contracts.fundraiser.errors import (
    ArithmeticOverflow,
    IllegalOwner,
    InvalidAccountData,
    UninitializedAccount,
)
from contracts.fundraiser.runtime import AccountInfo


def checked_add(a: int, b: int) -> int:
    """Add two u64 values, refusing to wrap."""
    total = a + b
    if total > U64_MAX:
        raise ArithmeticOverflow(f"{a} + {b} overflows u64")
    return total


class _Record:
    LAYOUT: struct.Struct

    @classmethod
    def size(cls) -> int:
        return cls.LAYOUT.size

    @classmethod
    def load(cls, account: AccountInfo, program_id: str):
        """
        Decode the record stored in `account`.

        Raises:
            UninitializedAccount: The account holds no data
            IllegalOwner: The account belongs to another program
            InvalidAccountData: The stored size doesn't match the layout
        """
        if account.data_is_empty():
            raise UninitializedAccount(f"{cls.__name__} account {account.key} does not exist")
        if not account.is_owned_by(program_id):
            raise IllegalOwner(f"{account.key} is not owned by the fundraiser program")
        if len(account.data) != cls.size():
            raise InvalidAccountData(
                f"{cls.__name__} account {account.key} has {len(account.data)} bytes, "
                f"expected {cls.size()}"
            )
        return cls.unpack(bytes(account.data))

    def store(self, account: AccountInfo) -> None:
        if len(account.data) != self.size():
            raise InvalidAccountData(f"{account.key} is not sized for {type(self).__name__}")
        account.data[:] = self.pack()


@dataclass
class Fundraiser(_Record):
    """One campaign's target, timing and running total."""

    owner: str
    mint: str
    amount_to_raise: int
    current_amount: int
    time_started: int
    duration: int
    bump: int

    LAYOUT = struct.Struct("<32s32sQQqBB")

    @classmethod
    def unpack(cls, data: bytes) -> "Fundraiser":
        try:
            owner, mint, amount_to_raise, current_amount, time_started, duration, bump = (
                cls.LAYOUT.unpack(data)
            )
        except struct.error as e:
            raise InvalidAccountData(str(e)) from e
        return cls(
            owner=encoding.encode_address(owner),
            mint=encoding.encode_address(mint),
            amount_to_raise=amount_to_raise,
            current_amount=current_amount,
            time_started=time_started,
            duration=duration,
            bump=bump,
        )

    def pack(self) -> bytes:
        try:
            return self.LAYOUT.pack(
                encoding.decode_address(self.owner),
                encoding.decode_address(self.mint),
                self.amount_to_raise,
                self.current_amount,
                self.time_started,
                self.duration,
                self.bump,
            )
        except struct.error as e:
            raise InvalidAccountData(str(e)) from e

    def elapsed_days(self, now: int, seconds_to_days: int) -> int:
        """Whole days between creation and `now`."""
        return (now - self.time_started) // seconds_to_days


@dataclass
class Contributor(_Record):
    """One contributor's cumulative deposit into one campaign."""

    amount: int
    bump: int

    LAYOUT = struct.Struct("<QB")

    @classmethod
    def unpack(cls, data: bytes) -> "Contributor":
        try:
            amount, bump = cls.LAYOUT.unpack(data)
        except struct.error as e:
            raise InvalidAccountData(str(e)) from e
        return cls(amount=amount, bump=bump)

    def pack(self) -> bytes:
        try:
            return self.LAYOUT.pack(self.amount, self.bump)
        except struct.error as e:
            raise InvalidAccountData(str(e)) from e
