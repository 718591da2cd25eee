"""
Host interfaces consumed by the fundraiser program.

The program never reaches for global services. The host hands it an
account list per instruction and a Runtime bundling four capabilities:

- TokenProgram: reads token accounts and mints, performs checked transfers
- SystemProgram: allocates fixed-size records at derived addresses
- Clock: current unix timestamp
- Rent: minimum balance that keeps a record of a given size alive

InMemoryLedger in contracts.fundraiser.ledger implements all of them.
"""

from dataclasses import dataclass
from typing import Protocol, Sequence


@dataclass
class AccountInfo:
    """
    An account as seen by the program for the duration of one instruction.

    Mutations to lamports, data and owner are written back by the host when
    the instruction succeeds.
    """

    key: str
    owner: str
    lamports: int = 0
    data: bytearray = None
    is_signer: bool = False

    def __post_init__(self):
        if self.data is None:
            self.data = bytearray()

    def data_is_empty(self) -> bool:
        return len(self.data) == 0

    def is_owned_by(self, program_id: str) -> bool:
        return self.owner == program_id


@dataclass(frozen=True)
class TokenAccount:
    """Decoded token-holding account."""

    mint: str
    owner: str
    amount: int


@dataclass(frozen=True)
class Mint:
    """Decoded token type descriptor."""

    decimals: int
    supply: int


class TokenProgram(Protocol):
    program_id: str

    def unpack_account(self, account: AccountInfo) -> TokenAccount:
        ...

    def unpack_mint(self, account: AccountInfo) -> Mint:
        ...

    def transfer_checked(
        self,
        source: AccountInfo,
        mint: AccountInfo,
        destination: AccountInfo,
        authority: AccountInfo,
        amount: int,
        decimals: int,
        signer_seeds: Sequence[bytes] = (),
        program_id: str | None = None,
    ) -> None:
        ...


class SystemProgram(Protocol):
    program_id: str

    def create_account(
        self,
        payer: AccountInfo,
        new_account: AccountInfo,
        lamports: int,
        space: int,
        owner: str,
        signer_seeds: Sequence[bytes] = (),
    ) -> None:
        ...


class Clock(Protocol):
    def unix_timestamp(self) -> int:
        ...


class Rent(Protocol):
    def minimum_balance(self, data_len: int) -> int:
        ...


@dataclass
class Runtime:
    """Capabilities injected into the program."""

    token_program: TokenProgram
    system_program: SystemProgram
    clock: Clock
    rent: Rent
