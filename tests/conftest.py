"""
Shared fixtures for the fundraiser program tests.

`campaign` is an initialized campaign (target 1,000,000 base units, 5 days,
3-decimal token) on a fresh in-memory ledger, wrapped in a small harness
that builds, signs and executes instructions.
"""

from dataclasses import dataclass

import pytest

from contracts.fundraiser import client
from contracts.fundraiser.config import FundraiserConfig
from contracts.fundraiser.contract import FundraiserProgram
from contracts.fundraiser.ledger import Identity, InMemoryLedger
from contracts.fundraiser.state import Contributor, Fundraiser


AMOUNT_TO_RAISE = 1_000_000
DURATION = 5
DECIMALS = 3
BACKER_TOKENS = 2_000_000


@dataclass
class Backer:
    identity: Identity
    tokens: str

    @property
    def address(self) -> str:
        return self.identity.address


class CampaignHarness:
    """An initialized campaign plus helpers to drive it."""

    def __init__(self, ledger: InMemoryLedger, program: FundraiserProgram,
                 amount_to_raise: int = AMOUNT_TO_RAISE, duration: int = DURATION):
        self.ledger = ledger
        self.program = program
        self.program_id = program.program_id

        self.owner = ledger.create_identity()
        self.mint = ledger.create_mint(DECIMALS)
        self.fundraiser, self.bump = client.derive_fundraiser(self.owner.address, self.program_id)
        self.vault, _ = client.derive_vault(self.fundraiser, self.mint, self.program_id)
        ledger.create_token_account(self.mint, self.fundraiser, key=self.vault)

        ix = client.initialize(
            self.owner.address, self.mint, amount_to_raise, duration, self.program_id
        )
        ledger.execute(program, ix.keys, ix.data, signers=[self.owner.private_key])

    def add_backer(self, tokens: int = BACKER_TOKENS) -> Backer:
        identity = self.ledger.create_identity()
        token_account = self.ledger.create_token_account(self.mint, identity.address, tokens)
        return Backer(identity=identity, tokens=token_account)

    def record_key(self, backer: Backer) -> str:
        return client.derive_contributor(self.fundraiser, backer.address, self.program_id)[0]

    def contribute_ix(self, backer: Backer, amount: int) -> client.Instruction:
        return client.contribute(
            backer.address, self.owner.address, self.mint, backer.tokens, amount,
            self.program_id,
        )

    def refund_ix(self, backer: Backer) -> client.Instruction:
        return client.refund(
            backer.address, self.owner.address, self.mint, backer.tokens, self.program_id,
        )

    def execute(self, ix: client.Instruction, signers=()):
        return self.ledger.execute(self.program, ix.keys, ix.data, signers=signers)

    def contribute(self, backer: Backer, amount: int):
        return self.execute(self.contribute_ix(backer, amount), [backer.identity.private_key])

    def refund(self, backer: Backer):
        return self.execute(self.refund_ix(backer), [backer.identity.private_key])

    def check(self, backer: Backer):
        ix = client.check_contribution(backer.address, self.owner.address, self.program_id)
        return self.execute(ix)

    def fundraiser_state(self) -> Fundraiser:
        return Fundraiser.unpack(bytes(self.ledger.get_account(self.fundraiser).data))

    def contributor_state(self, backer: Backer) -> Contributor:
        return Contributor.unpack(bytes(self.ledger.get_account(self.record_key(backer)).data))

    def vault_balance(self) -> int:
        return self.ledger.token_balance(self.vault)


@pytest.fixture
def ledger() -> InMemoryLedger:
    """Fresh ledger for each test."""
    return InMemoryLedger()


@pytest.fixture
def config() -> FundraiserConfig:
    """Default program configuration; override per class to change policy."""
    return FundraiserConfig()


@pytest.fixture
def program(ledger, config) -> FundraiserProgram:
    return FundraiserProgram(ledger.runtime, config)


@pytest.fixture
def campaign(ledger, program) -> CampaignHarness:
    return CampaignHarness(ledger, program)


@pytest.fixture
def new_campaign(ledger, program):
    """Factory for campaigns with a custom target or duration."""
    def make(amount_to_raise: int = AMOUNT_TO_RAISE, duration: int = DURATION) -> CampaignHarness:
        return CampaignHarness(ledger, program, amount_to_raise, duration)
    return make
