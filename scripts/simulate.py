"""
Fundraiser Simulation Script

Runs a full campaign against the in-memory ledger: one campaign with a
target of 1,000,000 base units over 5 days, a contribution on day 1, a
rejected oversized contribution, a rejected late contribution and a
refund once the campaign has failed.

Run with: python scripts/simulate.py

Environment variables (optional, .env is loaded):
- FUNDRAISER_PROGRAM_ID: program id to simulate under
- FUNDRAISER_MAX_CONTRIBUTION_PERCENTAGE: cap on a single contribution
- FUNDRAISER_LOG_LEVEL: program log level (default INFO)
"""

from contracts.fundraiser import client
from contracts.fundraiser.config import FundraiserConfig, configure_logging, load_config
from contracts.fundraiser.contract import FundraiserProgram
from contracts.fundraiser.errors import FundraiserError
from contracts.fundraiser.ledger import InMemoryLedger
from contracts.fundraiser.state import Fundraiser


AMOUNT_TO_RAISE = 1_000_000
DURATION_DAYS = 5
DECIMALS = 3


def run(config: FundraiserConfig) -> dict:
    """
    Run the simulated campaign.

    Args:
        config: Program configuration

    Returns:
        Summary with the final fundraiser total, vault balance, the
        contributor's token balance and whether their record still exists
    """
    ledger = InMemoryLedger()
    program = FundraiserProgram(ledger.runtime, config)
    program_id = config.program_id

    owner = ledger.create_identity()
    backer = ledger.create_identity()
    mint = ledger.create_mint(DECIMALS)

    fundraiser, _ = client.derive_fundraiser(owner.address, program_id)
    vault, _ = client.derive_vault(fundraiser, mint, program_id)
    ledger.create_token_account(mint, fundraiser, key=vault)
    backer_tokens = ledger.create_token_account(mint, backer.address, 2_000_000)

    print("\n1. Initializing fundraiser...")
    ix = client.initialize(owner.address, mint, AMOUNT_TO_RAISE, DURATION_DAYS, program_id)
    ledger.execute(program, ix.keys, ix.data, signers=[owner.private_key])
    print(f"   ✅ Fundraiser: {fundraiser}")

    print("\n2. Contributing 100,000 on day 1...")
    ledger.advance_days(1, config.seconds_to_days)
    ix = client.contribute(backer.address, owner.address, mint, backer_tokens, 100_000, program_id)
    ledger.execute(program, ix.keys, ix.data, signers=[backer.private_key])
    state = Fundraiser.unpack(bytes(ledger.get_account(fundraiser).data))
    print(f"   ✅ Raised so far: {state.current_amount}")

    print("\n3. Contributing 999,999 on day 1...")
    ix = client.contribute(backer.address, owner.address, mint, backer_tokens, 999_999, program_id)
    try:
        ledger.execute(program, ix.keys, ix.data, signers=[backer.private_key])
    except FundraiserError as e:
        print(f"   ❌ Rejected: {type(e).__name__}")

    print("\n4. Checking contribution...")
    ix = client.check_contribution(backer.address, owner.address, program_id)
    report = ledger.execute(program, ix.keys, ix.data)
    print(f"   Amount: {report.amount} ({float(report.share):.1%} of target)")
    print(f"   Ended: {report.ended}")

    print("\n5. Contributing 100,000 on day 6...")
    ledger.advance_days(5, config.seconds_to_days)
    ix = client.contribute(backer.address, owner.address, mint, backer_tokens, 100_000, program_id)
    try:
        ledger.execute(program, ix.keys, ix.data, signers=[backer.private_key])
    except FundraiserError as e:
        print(f"   ❌ Rejected: {type(e).__name__}")

    print("\n6. Refunding contributor...")
    ix = client.refund(backer.address, owner.address, mint, backer_tokens, program_id)
    ledger.execute(program, ix.keys, ix.data, signers=[backer.private_key])
    record, _ = client.derive_contributor(fundraiser, backer.address, program_id)
    print(f"   ✅ Refunded, token balance: {ledger.token_balance(backer_tokens)}")

    state = Fundraiser.unpack(bytes(ledger.get_account(fundraiser).data))
    return {
        "current_amount": state.current_amount,
        "vault_balance": ledger.token_balance(vault),
        "contributor_balance": ledger.token_balance(backer_tokens),
        "contributor_record_exists": ledger.exists(record),
    }


def main():
    print("=" * 60)
    print("Fundraiser Escrow - Campaign Simulation")
    print("=" * 60)

    config = load_config()
    configure_logging(config.log_level)

    summary = run(config)

    print("\n" + "=" * 60)
    print("Summary")
    print("=" * 60)
    for key, value in summary.items():
        print(f"   {key}: {value}")


if __name__ == "__main__":
    main()
