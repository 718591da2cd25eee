"""
Derived Address Lookup

Prints the fundraiser address for a campaign owner and, optionally, the
contributor record address for a contributor in that campaign and the
escrow vault address for the campaign's token.

Usage:
    python scripts/derive_address.py --owner <address>
    python scripts/derive_address.py --owner <address> --contributor <address>
    python scripts/derive_address.py --owner <address> --mint <address>
"""

import argparse

from algosdk import encoding

from contracts.fundraiser import client
from contracts.fundraiser.config import load_config


def derive(
    owner: str,
    contributor: str | None = None,
    program_id: str | None = None,
    mint: str | None = None,
) -> dict:
    """
    Derive record addresses.

    Args:
        owner: Campaign owner address
        contributor: Optional contributor address
        program_id: Program id, defaults to the configured one
        mint: Optional campaign token, to derive the vault

    Returns:
        Mapping of record name to (address, bump)
    """
    program_id = program_id or load_config().program_id
    fundraiser = client.derive_fundraiser(owner, program_id)
    derived = {"fundraiser": fundraiser}
    if contributor:
        derived["contributor"] = client.derive_contributor(fundraiser[0], contributor, program_id)
    if mint:
        derived["vault"] = client.derive_vault(fundraiser[0], mint, program_id)
    return derived


def main(argv=None):
    parser = argparse.ArgumentParser(description="Derive fundraiser record addresses")
    parser.add_argument("--owner", required=True, help="Campaign owner address")
    parser.add_argument("--contributor", help="Contributor address")
    parser.add_argument("--mint", help="Campaign token mint address")
    parser.add_argument("--program-id", help="Override the configured program id")
    args = parser.parse_args(argv)

    for address in filter(None, [args.owner, args.contributor, args.mint, args.program_id]):
        if not encoding.is_valid_address(address):
            parser.error(f"Invalid address: {address}")

    for name, (address, bump) in derive(args.owner, args.contributor, args.program_id, args.mint).items():
        print(f"{name}: {address} (bump {bump})")


if __name__ == "__main__":
    main()
