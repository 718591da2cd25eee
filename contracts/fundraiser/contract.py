"""
Fundraiser Escrow Program

A campaign collects token contributions toward a target within a fixed
number of days. Contributions sit in a single escrow token account at the
vault address derived from the fundraiser and its mint, whose authority is
the fundraiser's derived address. If the target is missed when the
window closes, every contributor can take back their full deposit.

Features:
- Initialize a campaign for a token type, target and duration
- Contribute with per-contribution and per-contributor caps
- Inspect a contributor's standing without changing anything
- Refund a contributor after a failed campaign and reclaim their record

Accounts per instruction (positional, extra accounts are ignored):
- Initialize: owner (signer), mint, fundraiser, system program
- Contribute: contributor (signer), mint, fundraiser, contributor record,
  contributor token account, vault, token program, system program
- CheckContribution: contributor, fundraiser, contributor record
- Refund: contributor (signer), owner, mint, fundraiser, contributor
  record, contributor token account, vault, system program, token program
"""

import logging
from dataclasses import dataclass
from fractions import Fraction
from typing import Sequence

from contracts.fundraiser.address import (
    contributor_seeds,
    fundraiser_seeds,
    vault_seeds,
    verify_program_address,
)
from contracts.fundraiser.config import FundraiserConfig
from contracts.fundraiser.errors import (
    AccountAlreadyInitialized,
    ContributionTooBig,
    ContributionTooSmall,
    FundraiserEnded,
    FundraiserNotEnded,
    IllegalOwner,
    InvalidAccountData,
    InvalidAmount,
    InvalidSeeds,
    MaximumContributionsReached,
    MissingRequiredSignature,
    NotEnoughAccountKeys,
    ProgramError,
    ProgramIdMismatch,
    TargetMet,
)
from contracts.fundraiser.instruction import (
    ContributeIxData,
    FundraiserInstruction,
    InitializeIxData,
    expect_empty,
    split_instruction,
)
from contracts.fundraiser.runtime import AccountInfo, Runtime, TokenAccount
from contracts.fundraiser.state import Contributor, Fundraiser, checked_add


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContributionReport:
    """A contributor's standing in a campaign."""

    contributor: str
    amount: int
    amount_to_raise: int
    elapsed_days: int
    duration: int
    max_contribution: int

    @property
    def share(self) -> Fraction:
        """Fraction of the target this contributor has deposited."""
        if self.amount_to_raise == 0:
            return Fraction(0)
        return Fraction(self.amount, self.amount_to_raise)

    @property
    def ended(self) -> bool:
        return self.elapsed_days >= self.duration

    @property
    def remaining_allowance(self) -> int:
        return max(self.max_contribution - self.amount, 0)


def _accounts(accounts: Sequence[AccountInfo], count: int) -> Sequence[AccountInfo]:
    if len(accounts) < count:
        raise NotEnoughAccountKeys(f"Expected {count} accounts, got {len(accounts)}")
    return accounts[:count]


class FundraiserProgram:
    """
    State transitions of the fundraiser escrow.

    Every instruction loads the accounts it needs, re-validates them
    against current storage, and either commits all of its mutations and
    transfers or raises. Instructions never call each other.
    """

    def __init__(self, runtime: Runtime, config: FundraiserConfig | None = None):
        self.runtime = runtime
        self.config = config or FundraiserConfig()
        self.program_id = self.config.program_id

    def process_instruction(self, accounts: Sequence[AccountInfo], data: bytes):
        """
        Route an encoded instruction to its handler.

        Args:
            accounts: Accounts in the order the instruction expects
            data: One-byte discriminant followed by the payload

        Returns:
            ContributionReport for CheckContribution, None otherwise
        """
        instruction, payload = split_instruction(data)
        handler = {
            FundraiserInstruction.INITIALIZE: self.initialize,
            FundraiserInstruction.CONTRIBUTE: self.contribute,
            FundraiserInstruction.CHECK_CONTRIBUTION: self.check_contribution,
            FundraiserInstruction.REFUND: self.refund,
        }[instruction]

        name = instruction.name.title().replace("_", "")
        logger.info("%s instruction", name)
        try:
            return handler(accounts, payload)
        except ProgramError as e:
            detail = e.category if e.code is None else f"{e.category}, code {e.code}"
            logger.warning("%s rejected: %s (%s)", name, e, detail)
            raise

    # Shared checks

    def _check_program(self, account: AccountInfo, expected: str) -> None:
        if account.key != expected:
            raise ProgramIdMismatch(f"Expected program {expected}, got {account.key}")

    def _load_fundraiser(self, fundraiser: AccountInfo, owner: str | None = None) -> Fundraiser:
        """Load a fundraiser and prove its address derives from its owner."""
        state = Fundraiser.load(fundraiser, self.program_id)
        verify_program_address(
            fundraiser.key,
            fundraiser_seeds(owner or state.owner),
            state.bump,
            self.program_id,
        )
        return state

    def _check_mint(self, mint: AccountInfo, state: Fundraiser) -> None:
        if mint.key != state.mint:
            raise InvalidAccountData(f"Fundraiser accepts {state.mint}, not {mint.key}")

    def _check_token_owner(self, token_account: AccountInfo, owner: AccountInfo, label: str) -> None:
        state = self.runtime.token_program.unpack_account(token_account)
        if state.owner != owner.key:
            raise IllegalOwner(f"{label} {token_account.key} is not owned by {owner.key}")

    def _check_vault(self, vault: AccountInfo, fundraiser: AccountInfo, state: Fundraiser) -> TokenAccount:
        """Prove `vault` is the campaign's one escrow account and holds its token."""
        verify_program_address(vault.key, vault_seeds(fundraiser.key, state.mint), None, self.program_id)
        vault_state = self.runtime.token_program.unpack_account(vault)
        if vault_state.mint != state.mint:
            raise InvalidAccountData(f"Vault {vault.key} holds {vault_state.mint}, not {state.mint}")
        return vault_state

    def _elapsed_days(self, state: Fundraiser) -> int:
        return state.elapsed_days(self.runtime.clock.unix_timestamp(), self.config.seconds_to_days)

    # Instructions

    def initialize(self, accounts: Sequence[AccountInfo], data: bytes) -> None:
        """
        Create the fundraiser record for a new campaign.

        Raises:
            MissingRequiredSignature: The owner didn't sign
            InvalidSeeds: The fundraiser address or bump isn't canonical
            AccountAlreadyInitialized: The campaign already exists
            InvalidAmount: Target whose cap is below one whole token, or
                zero duration
        """
        owner, mint, fundraiser, system_program = _accounts(accounts, 4)

        if not owner.is_signer:
            raise MissingRequiredSignature(f"Owner {owner.key} did not sign")

        ix_data = InitializeIxData.unpack(data)
        self._check_program(system_program, self.runtime.system_program.program_id)

        seeds = fundraiser_seeds(owner.key)
        verify_program_address(fundraiser.key, seeds, ix_data.bump, self.program_id)

        if not fundraiser.data_is_empty() or fundraiser.is_owned_by(self.program_id):
            raise AccountAlreadyInitialized(f"Fundraiser {fundraiser.key} already exists")

        mint_state = self.runtime.token_program.unpack_mint(mint)
        # The per-contribution cap must admit at least one whole token
        if self.config.max_contribution(ix_data.amount_to_raise) < 10 ** mint_state.decimals:
            raise InvalidAmount("Target too small to accept a one-token contribution")
        if ix_data.duration == 0:
            raise InvalidAmount("Duration must be at least one day")

        self.runtime.system_program.create_account(
            payer=owner,
            new_account=fundraiser,
            lamports=self.runtime.rent.minimum_balance(Fundraiser.size()),
            space=Fundraiser.size(),
            owner=self.program_id,
            signer_seeds=[*seeds, bytes([ix_data.bump])],
        )
        Fundraiser(
            owner=owner.key,
            mint=mint.key,
            amount_to_raise=ix_data.amount_to_raise,
            current_amount=0,
            time_started=self.runtime.clock.unix_timestamp(),
            duration=ix_data.duration,
            bump=ix_data.bump,
        ).store(fundraiser)

    def contribute(self, accounts: Sequence[AccountInfo], data: bytes) -> None:
        """
        Deposit tokens into the campaign escrow.

        The contributor record is created on first use. The gates run in a
        fixed order: signature, token account ownership, record creation,
        minimum size, maximum size, window, per-contributor cap.
        """
        (
            contributor,
            mint,
            fundraiser,
            contributor_acc,
            contributor_ata,
            vault,
            token_program,
            system_program,
        ) = _accounts(accounts, 8)
        token = self.runtime.token_program

        if not contributor.is_signer:
            raise MissingRequiredSignature(f"Contributor {contributor.key} did not sign")

        self._check_token_owner(vault, fundraiser, "Vault")
        self._check_token_owner(contributor_ata, contributor, "Token account")

        ix_data = ContributeIxData.unpack(data)
        self._check_program(token_program, token.program_id)
        self._check_program(system_program, self.runtime.system_program.program_id)

        fundraiser_state = self._load_fundraiser(fundraiser)
        if ix_data.fundraiser_bump != fundraiser_state.bump:
            raise InvalidSeeds("Fundraiser bump does not match the stored bump")
        self._check_mint(mint, fundraiser_state)
        self._check_vault(vault, fundraiser, fundraiser_state)

        seeds = contributor_seeds(fundraiser.key, contributor.key)
        verify_program_address(contributor_acc.key, seeds, ix_data.contributor_bump, self.program_id)

        if contributor_acc.data_is_empty():
            self.runtime.system_program.create_account(
                payer=contributor,
                new_account=contributor_acc,
                lamports=self.runtime.rent.minimum_balance(Contributor.size()),
                space=Contributor.size(),
                owner=self.program_id,
                signer_seeds=[*seeds, bytes([ix_data.contributor_bump])],
            )
            Contributor(amount=0, bump=ix_data.contributor_bump).store(contributor_acc)
            logger.debug("Created contributor record %s", contributor_acc.key)
        contributor_state = Contributor.load(contributor_acc, self.program_id)

        decimals = token.unpack_mint(mint).decimals
        if ix_data.amount < 10 ** decimals:
            raise ContributionTooSmall()

        max_contribution = self.config.max_contribution(fundraiser_state.amount_to_raise)
        if ix_data.amount > max_contribution:
            raise ContributionTooBig()

        if self._elapsed_days(fundraiser_state) >= fundraiser_state.duration:
            raise FundraiserEnded()

        # Rejects only once the contributor is already over the cap, so one
        # contribution from under the cap may still cross it.
        if (
            contributor_state.amount > max_contribution
            and contributor_state.amount + ix_data.amount > max_contribution
        ):
            raise MaximumContributionsReached()

        contributor_total = checked_add(contributor_state.amount, ix_data.amount)
        fundraiser_total = checked_add(fundraiser_state.current_amount, ix_data.amount)

        token.transfer_checked(
            source=contributor_ata,
            mint=mint,
            destination=vault,
            authority=contributor,
            amount=ix_data.amount,
            decimals=decimals,
        )

        contributor_state.amount = contributor_total
        fundraiser_state.current_amount = fundraiser_total
        contributor_state.store(contributor_acc)
        fundraiser_state.store(fundraiser)

    def check_contribution(self, accounts: Sequence[AccountInfo], data: bytes) -> ContributionReport:
        """
        Report a contributor's standing. Read only.

        Returns:
            ContributionReport with the deposit, its share of the target and
            whether the window has closed
        """
        contributor, fundraiser, contributor_acc = _accounts(accounts, 3)
        expect_empty(data)

        fundraiser_state = self._load_fundraiser(fundraiser)
        contributor_state = Contributor.load(contributor_acc, self.program_id)
        verify_program_address(
            contributor_acc.key,
            contributor_seeds(fundraiser.key, contributor.key),
            contributor_state.bump,
            self.program_id,
        )

        return ContributionReport(
            contributor=contributor.key,
            amount=contributor_state.amount,
            amount_to_raise=fundraiser_state.amount_to_raise,
            elapsed_days=self._elapsed_days(fundraiser_state),
            duration=fundraiser_state.duration,
            max_contribution=self.config.max_contribution(fundraiser_state.amount_to_raise),
        )

    def refund(self, accounts: Sequence[AccountInfo], data: bytes) -> None:
        """
        Return a contributor's full deposit after a failed campaign.

        The fundraiser's running total is left as is; it records gross
        lifetime contributions. The contributor record is closed and its
        rent goes back to the contributor.
        """
        (
            contributor,
            owner,
            mint,
            fundraiser,
            contributor_acc,
            contributor_ata,
            vault,
            system_program,
            token_program,
        ) = _accounts(accounts, 9)
        token = self.runtime.token_program

        if not contributor.is_signer:
            raise MissingRequiredSignature(f"Contributor {contributor.key} did not sign")

        self._check_token_owner(vault, fundraiser, "Vault")
        self._check_token_owner(contributor_ata, contributor, "Token account")

        expect_empty(data)
        self._check_program(token_program, token.program_id)
        self._check_program(system_program, self.runtime.system_program.program_id)

        fundraiser_state = self._load_fundraiser(fundraiser, owner=owner.key)
        self._check_mint(mint, fundraiser_state)
        vault_state = self._check_vault(vault, fundraiser, fundraiser_state)

        contributor_state = Contributor.load(contributor_acc, self.program_id)
        verify_program_address(
            contributor_acc.key,
            contributor_seeds(fundraiser.key, contributor.key),
            contributor_state.bump,
            self.program_id,
        )

        if self._elapsed_days(fundraiser_state) < fundraiser_state.duration:
            raise FundraiserNotEnded()
        if vault_state.amount >= fundraiser_state.amount_to_raise:
            raise TargetMet()

        token.transfer_checked(
            source=vault,
            mint=mint,
            destination=contributor_ata,
            authority=fundraiser,
            amount=contributor_state.amount,
            decimals=token.unpack_mint(mint).decimals,
            signer_seeds=[*fundraiser_seeds(owner.key), bytes([fundraiser_state.bump])],
            program_id=self.program_id,
        )

        contributor.lamports = checked_add(contributor.lamports, contributor_acc.lamports)
        contributor_acc.lamports = 0
        del contributor_acc.data[:]
        contributor_acc.owner = self.runtime.system_program.program_id
