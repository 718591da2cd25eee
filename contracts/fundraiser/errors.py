"""
Errors raised by the fundraiser escrow program.

Every error aborts the whole instruction; the host transaction boundary
rolls back whatever the instruction already changed. Errors are grouped by
category:

- Authorization: the caller is malicious or malformed (always fatal)
- Structural: the caller or integration passed the wrong shape of input
- Policy: an expected refusal the caller can recover from by waiting or
  choosing a different action
- Arithmetic: a checked u64 accumulation overflowed
- Collaborator: raised by the token program or the allocation primitive
  and propagated unchanged
"""

AUTHORIZATION = "authorization"
STRUCTURAL = "structural"
POLICY = "policy"
ARITHMETIC = "arithmetic"
COLLABORATOR = "collaborator"


class ProgramError(Exception):
    """Base class for every error the program or its host raises."""

    category = STRUCTURAL
    # Only policy errors carry a program-specific code
    code: int | None = None
    default_message = "Program error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)


class ConfigurationError(Exception):
    """Raised when environment configuration cannot be parsed."""


# Authorization

class MissingRequiredSignature(ProgramError):
    category = AUTHORIZATION
    default_message = "Missing required signature"


class IllegalOwner(ProgramError):
    category = AUTHORIZATION
    default_message = "Account is owned by an unexpected party"


class InvalidSeeds(ProgramError):
    category = AUTHORIZATION
    default_message = "Address does not match its derivation seeds"


# Structural

class NotEnoughAccountKeys(ProgramError):
    default_message = "Not enough account keys"


class InvalidInstructionData(ProgramError):
    default_message = "Invalid instruction"


class AccountAlreadyInitialized(ProgramError):
    default_message = "Account already initialized"


class UninitializedAccount(ProgramError):
    default_message = "Account does not exist"


class InvalidAccountData(ProgramError):
    default_message = "Invalid account data"


# Policy

class FundraiserError(ProgramError):
    """Policy refusal with a program-specific error code."""

    category = POLICY


class ContributionTooSmall(FundraiserError):
    code = 0
    default_message = "Contribution is below one whole token"


class ContributionTooBig(FundraiserError):
    code = 1
    default_message = "Contribution exceeds the maximum allowed share of the target"


class FundraiserEnded(FundraiserError):
    code = 2
    default_message = "Fundraiser has ended"


class FundraiserNotEnded(FundraiserError):
    code = 3
    default_message = "Fundraiser has not ended yet"


class MaximumContributionsReached(FundraiserError):
    code = 4
    default_message = "Maximum contributions reached for this contributor"


class TargetMet(FundraiserError):
    code = 5
    default_message = "Fundraiser target was met"


class InvalidAmount(FundraiserError):
    code = 6
    default_message = "Invalid fundraiser amount or duration"


# Arithmetic

class ArithmeticOverflow(ProgramError):
    category = ARITHMETIC
    default_message = "Arithmetic overflow"


# Collaborators

class AccountAlreadyInUse(ProgramError):
    category = COLLABORATOR
    default_message = "Account already in use"


class ProgramIdMismatch(ProgramError):
    category = COLLABORATOR
    default_message = "Unexpected program id"


class TokenError(ProgramError):
    category = COLLABORATOR
    default_message = "Token program error"


class InsufficientFunds(TokenError):
    default_message = "Insufficient funds"


class InsufficientLamports(ProgramError):
    category = COLLABORATOR
    default_message = "Insufficient lamports for rent"


class MintMismatch(TokenError):
    default_message = "Account not associated with this mint"


class MintDecimalsMismatch(TokenError):
    default_message = "Mint decimals mismatch"


class OwnerMismatch(TokenError):
    default_message = "Owner does not match"
