"""
In-memory host for the fundraiser program.

InMemoryLedger keeps every account in a dict and implements the
capabilities of contracts.fundraiser.runtime:

- InMemoryTokenProgram: token accounts and mints with checked transfers
- InMemorySystemProgram: rent-funded allocation of new records
- ManualClock: a clock tests and scripts move by hand
- RentSchedule: rent-exempt minimum balances

`execute` is the transaction boundary. Instructions run one at a time
under a lock against private copies of the accounts they name; the copies
are written back only when the program returns, so a failed instruction
leaves no trace.
"""

import struct
import threading
from dataclasses import dataclass
from typing import Sequence

from algosdk import account, encoding

from contracts.fundraiser.address import create_program_address
from contracts.fundraiser.constants import SECONDS_TO_DAYS, SYSTEM_PROGRAM_ID, TOKEN_PROGRAM_ID
from contracts.fundraiser.errors import (
    AccountAlreadyInUse,
    IllegalOwner,
    InsufficientFunds,
    InsufficientLamports,
    InvalidAccountData,
    InvalidSeeds,
    MintDecimalsMismatch,
    MintMismatch,
    MissingRequiredSignature,
    OwnerMismatch,
    UninitializedAccount,
)
from contracts.fundraiser.runtime import AccountInfo, Mint, Runtime, TokenAccount
from contracts.fundraiser.state import checked_add


# Token account: mint (32) + owner (32) + amount (8)
TOKEN_ACCOUNT_LAYOUT = struct.Struct("<32s32sQ")
# Mint: decimals (1) + supply (8)
MINT_LAYOUT = struct.Struct("<BQ")

DEFAULT_START_TIME = 1_700_000_000
DEFAULT_IDENTITY_LAMPORTS = 10_000_000_000


@dataclass(frozen=True)
class Identity:
    """A keypair-backed party that can sign instructions."""

    address: str
    private_key: str


def _signer_matches(authority: AccountInfo, signer_seeds: Sequence[bytes], program_id: str | None) -> bool:
    if authority.is_signer:
        return True
    if not signer_seeds or program_id is None:
        return False
    try:
        return create_program_address(signer_seeds, program_id) == authority.key
    except InvalidSeeds:
        return False


class InMemoryTokenProgram:
    """Token accounts and mints stored as fixed layouts in ledger accounts."""

    program_id = TOKEN_PROGRAM_ID

    @staticmethod
    def pack_account(state: TokenAccount) -> bytes:
        return TOKEN_ACCOUNT_LAYOUT.pack(
            encoding.decode_address(state.mint),
            encoding.decode_address(state.owner),
            state.amount,
        )

    @staticmethod
    def pack_mint(state: Mint) -> bytes:
        return MINT_LAYOUT.pack(state.decimals, state.supply)

    def _check_layout(self, info: AccountInfo, layout: struct.Struct, kind: str) -> None:
        if info.data_is_empty():
            raise UninitializedAccount(f"{kind} {info.key} does not exist")
        if not info.is_owned_by(self.program_id):
            raise IllegalOwner(f"{kind} {info.key} is not owned by the token program")
        if len(info.data) != layout.size:
            raise InvalidAccountData(f"{info.key} is not a {kind}")

    def unpack_account(self, info: AccountInfo) -> TokenAccount:
        self._check_layout(info, TOKEN_ACCOUNT_LAYOUT, "token account")
        mint, owner, amount = TOKEN_ACCOUNT_LAYOUT.unpack(bytes(info.data))
        return TokenAccount(
            mint=encoding.encode_address(mint),
            owner=encoding.encode_address(owner),
            amount=amount,
        )

    def unpack_mint(self, info: AccountInfo) -> Mint:
        self._check_layout(info, MINT_LAYOUT, "mint")
        decimals, supply = MINT_LAYOUT.unpack(bytes(info.data))
        return Mint(decimals=decimals, supply=supply)

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
        """
        Move `amount` base units from `source` to `destination`.

        The authority must own `source` and either have signed the
        instruction or be the derived address of `signer_seeds` under the
        invoking `program_id`.
        """
        source_state = self.unpack_account(source)
        destination_state = self.unpack_account(destination)
        mint_state = self.unpack_mint(mint)

        if source_state.mint != mint.key or destination_state.mint != mint.key:
            raise MintMismatch()
        if decimals != mint_state.decimals:
            raise MintDecimalsMismatch()
        if source_state.owner != authority.key:
            raise OwnerMismatch()
        if not _signer_matches(authority, signer_seeds, program_id):
            raise MissingRequiredSignature(f"{authority.key} did not authorize the transfer")
        if source_state.amount < amount:
            raise InsufficientFunds(f"{source.key} holds {source_state.amount}, needs {amount}")

        if source.key == destination.key:
            return

        source.data[:] = self.pack_account(
            TokenAccount(source_state.mint, source_state.owner, source_state.amount - amount)
        )
        destination.data[:] = self.pack_account(
            TokenAccount(
                destination_state.mint,
                destination_state.owner,
                checked_add(destination_state.amount, amount),
            )
        )


class InMemorySystemProgram:
    """Allocates rent-funded accounts."""

    program_id = SYSTEM_PROGRAM_ID

    def create_account(
        self,
        payer: AccountInfo,
        new_account: AccountInfo,
        lamports: int,
        space: int,
        owner: str,
        signer_seeds: Sequence[bytes] = (),
    ) -> None:
        if not payer.is_signer:
            raise MissingRequiredSignature(f"Payer {payer.key} did not sign")
        if not _signer_matches(new_account, signer_seeds, owner):
            raise MissingRequiredSignature(f"New account {new_account.key} did not sign")
        if (
            new_account.lamports > 0
            or not new_account.data_is_empty()
            or not new_account.is_owned_by(self.program_id)
        ):
            raise AccountAlreadyInUse(f"{new_account.key} already in use")
        if payer.lamports < lamports:
            raise InsufficientLamports(f"{payer.key} holds {payer.lamports}, needs {lamports}")

        payer.lamports -= lamports
        new_account.lamports = lamports
        new_account.data = bytearray(space)
        new_account.owner = owner


class ManualClock:
    def __init__(self, now: int = DEFAULT_START_TIME):
        self.now = now

    def unix_timestamp(self) -> int:
        return self.now


@dataclass(frozen=True)
class RentSchedule:
    """Rent-exempt balance: (overhead + size) * lamports per byte-year * threshold years."""

    lamports_per_byte_year: int = 3_480
    exemption_threshold: int = 2
    account_storage_overhead: int = 128

    def minimum_balance(self, data_len: int) -> int:
        return (
            (self.account_storage_overhead + data_len)
            * self.lamports_per_byte_year
            * self.exemption_threshold
        )


class InMemoryLedger:
    """Account store plus the services the program needs."""

    def __init__(self, start_time: int = DEFAULT_START_TIME, rent: RentSchedule | None = None):
        self._accounts: dict[str, AccountInfo] = {}
        self._lock = threading.Lock()

        self.token_program = InMemoryTokenProgram()
        self.system_program = InMemorySystemProgram()
        self.clock = ManualClock(start_time)
        self.rent = rent or RentSchedule()
        self.runtime = Runtime(
            token_program=self.token_program,
            system_program=self.system_program,
            clock=self.clock,
            rent=self.rent,
        )

    # Accounts

    def get_account(self, key: str) -> AccountInfo | None:
        """Snapshot of a stored account, or None if it doesn't exist."""
        stored = self._accounts.get(key)
        if stored is None:
            return None
        return AccountInfo(
            key=stored.key,
            owner=stored.owner,
            lamports=stored.lamports,
            data=bytearray(stored.data),
        )

    def exists(self, key: str) -> bool:
        return key in self._accounts

    def lamports(self, key: str) -> int:
        stored = self._accounts.get(key)
        return stored.lamports if stored else 0

    def put_account(self, info: AccountInfo) -> None:
        """Write an account directly, bypassing any program."""
        if info.lamports == 0 and info.data_is_empty():
            self._accounts.pop(info.key, None)
            return
        self._accounts[info.key] = AccountInfo(
            key=info.key,
            owner=info.owner,
            lamports=info.lamports,
            data=bytearray(info.data),
        )

    def create_identity(self, lamports: int = DEFAULT_IDENTITY_LAMPORTS) -> Identity:
        """Generate a keypair and fund its system account."""
        private_key, address = account.generate_account()
        self.put_account(AccountInfo(key=address, owner=SYSTEM_PROGRAM_ID, lamports=lamports))
        return Identity(address=address, private_key=private_key)

    def _new_key(self) -> str:
        _, address = account.generate_account()
        return address

    def create_mint(self, decimals: int, supply: int = 0) -> str:
        key = self._new_key()
        self.put_account(
            AccountInfo(
                key=key,
                owner=TOKEN_PROGRAM_ID,
                lamports=self.rent.minimum_balance(MINT_LAYOUT.size),
                data=bytearray(InMemoryTokenProgram.pack_mint(Mint(decimals, supply))),
            )
        )
        return key

    def create_token_account(self, mint: str, owner: str, amount: int = 0, key: str | None = None) -> str:
        """
        Create a token account for `owner`, minting `amount` into it.

        `key` places the account at a fixed address, such as a campaign's
        derived vault; a fresh address is generated otherwise.
        """
        key = key or self._new_key()
        if key in self._accounts:
            raise AccountAlreadyInUse(f"{key} already in use")

        mint_info = self._accounts[mint]
        mint_state = self.token_program.unpack_mint(mint_info)
        mint_info.data[:] = InMemoryTokenProgram.pack_mint(
            Mint(mint_state.decimals, checked_add(mint_state.supply, amount))
        )

        self.put_account(
            AccountInfo(
                key=key,
                owner=TOKEN_PROGRAM_ID,
                lamports=self.rent.minimum_balance(TOKEN_ACCOUNT_LAYOUT.size),
                data=bytearray(InMemoryTokenProgram.pack_account(TokenAccount(mint, owner, amount))),
            )
        )
        return key

    def mint_to(self, token_account: str, amount: int) -> None:
        """Mint `amount` new tokens straight into an existing token account."""
        info = self._accounts[token_account]
        state = self.token_program.unpack_account(info)
        mint_info = self._accounts[state.mint]
        mint_state = self.token_program.unpack_mint(mint_info)

        mint_info.data[:] = InMemoryTokenProgram.pack_mint(
            Mint(mint_state.decimals, checked_add(mint_state.supply, amount))
        )
        info.data[:] = InMemoryTokenProgram.pack_account(
            TokenAccount(state.mint, state.owner, checked_add(state.amount, amount))
        )

    def token_balance(self, key: str) -> int:
        return self.token_program.unpack_account(self._accounts[key]).amount

    # Time

    def set_time(self, unix_timestamp: int) -> None:
        self.clock.now = unix_timestamp

    def advance_days(self, days: int, seconds_to_days: int = SECONDS_TO_DAYS) -> None:
        self.clock.now += days * seconds_to_days

    # Transactions

    def execute(self, program, keys: Sequence[str], data: bytes, signers: Sequence[str] = ()):
        """
        Run one instruction atomically.

        Args:
            program: Object exposing process_instruction(accounts, data)
            keys: Account addresses in the order the instruction expects
            data: Encoded instruction
            signers: Private keys of the parties authorizing the instruction

        Returns:
            Whatever the instruction returns
        """
        signed_by = {account.address_from_private_key(private_key) for private_key in signers}

        with self._lock:
            infos: dict[str, AccountInfo] = {}
            ordered = []
            for key in keys:
                if key not in infos:
                    stored = self._accounts.get(key)
                    infos[key] = AccountInfo(
                        key=key,
                        owner=stored.owner if stored else SYSTEM_PROGRAM_ID,
                        lamports=stored.lamports if stored else 0,
                        data=bytearray(stored.data) if stored else bytearray(),
                        is_signer=key in signed_by,
                    )
                ordered.append(infos[key])

            result = program.process_instruction(ordered, data)

            for info in infos.values():
                self.put_account(info)
            return result
