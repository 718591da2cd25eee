"""
Client-side instruction builders for the fundraiser program.

Each builder derives the record addresses and bumps the program expects and
returns the account keys in the order the program reads them, together with
the encoded instruction data.
"""

from typing import NamedTuple

from contracts.fundraiser.address import (
    contributor_seeds,
    find_program_address,
    fundraiser_seeds,
    vault_seeds,
)
from contracts.fundraiser.constants import DEFAULT_PROGRAM_ID, SYSTEM_PROGRAM_ID, TOKEN_PROGRAM_ID
from contracts.fundraiser.instruction import (
    ContributeIxData,
    InitializeIxData,
    encode_check_contribution,
    encode_refund,
)


class Instruction(NamedTuple):
    keys: list[str]
    data: bytes


def derive_fundraiser(owner: str, program_id: str = DEFAULT_PROGRAM_ID) -> tuple[str, int]:
    """Fundraiser address and bump for a campaign owner."""
    return find_program_address(fundraiser_seeds(owner), program_id)


def derive_contributor(
    fundraiser: str,
    contributor: str,
    program_id: str = DEFAULT_PROGRAM_ID,
) -> tuple[str, int]:
    """Contributor record address and bump within a campaign."""
    return find_program_address(contributor_seeds(fundraiser, contributor), program_id)


def derive_vault(fundraiser: str, mint: str, program_id: str = DEFAULT_PROGRAM_ID) -> tuple[str, int]:
    """Escrow token account address and bump for a campaign."""
    return find_program_address(vault_seeds(fundraiser, mint), program_id)


def initialize(
    owner: str,
    mint: str,
    amount_to_raise: int,
    duration: int,
    program_id: str = DEFAULT_PROGRAM_ID,
) -> Instruction:
    fundraiser, bump = derive_fundraiser(owner, program_id)
    return Instruction(
        keys=[owner, mint, fundraiser, SYSTEM_PROGRAM_ID],
        data=InitializeIxData(amount_to_raise, duration, bump).encode(),
    )


def contribute(
    contributor: str,
    owner: str,
    mint: str,
    contributor_token: str,
    amount: int,
    program_id: str = DEFAULT_PROGRAM_ID,
) -> Instruction:
    fundraiser, fundraiser_bump = derive_fundraiser(owner, program_id)
    record, record_bump = derive_contributor(fundraiser, contributor, program_id)
    vault, _ = derive_vault(fundraiser, mint, program_id)
    return Instruction(
        keys=[
            contributor,
            mint,
            fundraiser,
            record,
            contributor_token,
            vault,
            TOKEN_PROGRAM_ID,
            SYSTEM_PROGRAM_ID,
        ],
        data=ContributeIxData(amount, fundraiser_bump, record_bump).encode(),
    )


def check_contribution(
    contributor: str,
    owner: str,
    program_id: str = DEFAULT_PROGRAM_ID,
) -> Instruction:
    fundraiser, _ = derive_fundraiser(owner, program_id)
    record, _ = derive_contributor(fundraiser, contributor, program_id)
    return Instruction(keys=[contributor, fundraiser, record], data=encode_check_contribution())


def refund(
    contributor: str,
    owner: str,
    mint: str,
    contributor_token: str,
    program_id: str = DEFAULT_PROGRAM_ID,
) -> Instruction:
    fundraiser, _ = derive_fundraiser(owner, program_id)
    record, _ = derive_contributor(fundraiser, contributor, program_id)
    vault, _ = derive_vault(fundraiser, mint, program_id)
    return Instruction(
        keys=[
            contributor,
            owner,
            mint,
            fundraiser,
            record,
            contributor_token,
            vault,
            SYSTEM_PROGRAM_ID,
            TOKEN_PROGRAM_ID,
        ],
        data=encode_refund(),
    )
