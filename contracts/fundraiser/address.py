"""
Derived addresses for fundraiser records.

A derived address is the SHA-512/256 digest of the seeds, a bump byte,
the owning program id and a fixed marker, encoded as an Algorand address.
Digests that decode to a valid ed25519 point are rejected, so no private
key can ever sign for a derived address; only the owning program can, by
presenting the seeds.

The canonical bump is the highest value (searching down from 255) that
yields an off-curve digest. Every access re-derives the address from the
seeds and the claimed bump and rejects anything that isn't canonical.

The escrow vault is a token account living at the derived address of
(b"vault", fundraiser, mint), so each campaign has exactly one.
"""

from typing import Sequence

from algosdk import encoding
from nacl.bindings import crypto_core_ed25519_is_valid_point

from contracts.fundraiser.constants import CONTRIBUTOR_SEED, FUNDRAISER_SEED, U8_MAX, VAULT_SEED
from contracts.fundraiser.errors import InvalidSeeds


PDA_MARKER = b"ProgramDerivedAddress"
MAX_SEED_LEN = 32
MAX_SEEDS = 16


def fundraiser_seeds(owner: str) -> list[bytes]:
    """Seeds of the fundraiser record created by `owner`."""
    return [FUNDRAISER_SEED, encoding.decode_address(owner)]


def contributor_seeds(fundraiser: str, contributor: str) -> list[bytes]:
    """Seeds of `contributor`'s record within the campaign at `fundraiser`."""
    return [
        CONTRIBUTOR_SEED,
        encoding.decode_address(fundraiser),
        encoding.decode_address(contributor),
    ]


def vault_seeds(fundraiser: str, mint: str) -> list[bytes]:
    """Seeds of the escrow token account holding the campaign's deposits."""
    return [VAULT_SEED, encoding.decode_address(fundraiser), encoding.decode_address(mint)]


def create_program_address(seeds: Sequence[bytes], program_id: str) -> str:
    """
    Hash seeds (bump included) into an address owned by `program_id`.

    Raises:
        InvalidSeeds: Too many or oversized seeds, or the digest lies on
            the ed25519 curve
    """
    if len(seeds) > MAX_SEEDS:
        raise InvalidSeeds("Too many seeds")
    for seed in seeds:
        if len(seed) > MAX_SEED_LEN:
            raise InvalidSeeds("Seed exceeds maximum length")

    digest = encoding.checksum(
        b"".join(seeds) + encoding.decode_address(program_id) + PDA_MARKER
    )
    if crypto_core_ed25519_is_valid_point(digest):
        raise InvalidSeeds("Derived address lies on the ed25519 curve")
    return encoding.encode_address(digest)


def find_program_address(seeds: Sequence[bytes], program_id: str) -> tuple[str, int]:
    """
    Find the canonical derived address for `seeds`.

    Returns:
        Tuple of (address, bump)
    """
    for bump in range(U8_MAX, -1, -1):
        try:
            return create_program_address([*seeds, bytes([bump])], program_id), bump
        except InvalidSeeds:
            continue
    raise InvalidSeeds("Unable to find a viable bump")


def verify_program_address(
    address: str,
    seeds: Sequence[bytes],
    bump: int | None,
    program_id: str,
) -> None:
    """
    Check that `address` is the canonical derivation of `seeds` with `bump`.

    A `bump` of None accepts whichever bump is canonical.

    Raises:
        InvalidSeeds: The address or bump does not match the canonical pair
    """
    expected, canonical_bump = find_program_address(seeds, program_id)
    if (bump is not None and bump != canonical_bump) or address != expected:
        raise InvalidSeeds(f"{address} is not the canonical address for its seeds")
