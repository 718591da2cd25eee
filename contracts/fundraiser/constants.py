"""
Fixed parameters of the fundraiser escrow program.

Program ids are Algorand-style base32 addresses. The default program id
is derived from a fixed label so every deployment of the in-memory host
agrees on it unless FUNDRAISER_PROGRAM_ID overrides it.
"""

from algosdk import encoding


# Seeds
FUNDRAISER_SEED = b"fundraiser"
CONTRIBUTOR_SEED = b"contributor"
VAULT_SEED = b"vault"

# Contribution policy
MAX_CONTRIBUTION_PERCENTAGE = 10
PERCENTAGE_SCALER = 100

# Time
SECONDS_TO_DAYS = 86_400

# Integer widths of the on-storage layouts
U8_MAX = 2**8 - 1
U64_MAX = 2**64 - 1

# Program ids
SYSTEM_PROGRAM_ID = encoding.encode_address(bytes(32))
TOKEN_PROGRAM_ID = encoding.encode_address(encoding.checksum(b"token-program"))
DEFAULT_PROGRAM_ID = encoding.encode_address(encoding.checksum(b"fundraiser-escrow"))
