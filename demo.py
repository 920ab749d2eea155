#!/usr/bin/env python3
"""
demo.py - Interactive Tutorial: Securitize an NFT Step by Step

Walks one asset through its whole life: securitization, share trading,
redemption, claims and the share ledger closing itself. Each step builds on
the previous one. Press Enter to advance.

WHAT YOU'LL LEARN:
  1-3: Setup        - Platform, registry, a source NFT contract
  4-5: Securitize   - Wrapper and share ledger spawned, asset moved
  6-7: Trading      - Registration and share transfers
  8-9: Exit         - Redemption, claim, cleanup
  10:  Audit        - Receipts and conservation

Run:
    python demo.py           # Interactive mode (press Enter for each step)
    python demo.py --quick   # Run all steps without pausing
"""

from dataclasses import dataclass
import sys

from fractose import (
    Platform, Registry, NonFungibleToken,
    ONE_UNIT, ONE_YOCTO, STORAGE_BALANCE_MIN,
    FractoseError,
)


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass
class DemoConfig:
    """Configuration for the tutorial. Modify these to experiment."""
    registry_id: str = "registry.near"
    nft_id: str = "nft.near"
    token_id: str = "0"

    client_funding: int = 1000 * ONE_UNIT
    registry_funding: int = 100 * ONE_UNIT

    shares_count: int = 1000
    decimals: int = 8
    exit_price: int = 10 * ONE_UNIT

    shares_to_bob: int = 300


CONFIG = DemoConfig()

QUICK_MODE = "--quick" in sys.argv


def wait_for_enter():
    """Pause for user input unless in quick mode."""
    if not QUICK_MODE:
        input("\n[Press Enter to continue...]")


def step_header(number: int, title: str, objective: str):
    print(f"\n{'='*70}")
    print(f"STEP {number}: {title}")
    print(f"{'='*70}")
    print(f"\nObjective: {objective}\n")


def section_header(text: str):
    print(f"\n--- {text} ---\n")


def units(amount: int) -> str:
    return f"{amount / ONE_UNIT:,.6f}"


# ============================================================================
# PHASE 1: SETUP
# ============================================================================

def step_01_platform() -> Platform:
    step_header(1, "The Platform",
        "Actors live on a platform and talk only through one-way messages.")

    print(">>> platform = Platform(verbose=True)")
    platform = Platform(verbose=True)
    for account in ("alice.near", "bob.near", "carol.near"):
        platform.create_account(account, CONFIG.client_funding)
        print(f"    {account:<12} {units(platform.balance_of(account))}")

    section_header("Key Insight")
    print("""
    A call runs to completion before anything else happens. The messages it
    emits are queued and delivered later, one at a time, by step() or run().
    Nobody waits for a reply.
    """)
    return platform


def step_02_registry(platform: Platform) -> Platform:
    step_header(2, "The Registry",
        "The registry is the single entry point for securitization.")

    print(f">>> platform.deploy({CONFIG.registry_id!r}, Registry, ...)")
    platform.deploy(CONFIG.registry_id, Registry, CONFIG.registry_funding)
    platform.call(CONFIG.registry_id, CONFIG.registry_id, "new")

    funding = platform.view(CONFIG.registry_id, "funding")
    print(f"Wrapper funding:      {units(funding.wrapper_funding)}")
    print(f"Share ledger funding: {units(funding.share_ledger_funding)}")
    return platform


def step_03_nft(platform: Platform) -> Platform:
    step_header(3, "A Source Asset",
        "Mint a token and approve the registry to move it.")

    platform.deploy(CONFIG.nft_id, NonFungibleToken)
    platform.call(CONFIG.nft_id, CONFIG.nft_id, "new", owner_id=CONFIG.nft_id)
    platform.call(CONFIG.nft_id, CONFIG.nft_id, "nft_mint",
                  token_id=CONFIG.token_id, receiver_id="alice.near")
    platform.call("alice.near", CONFIG.nft_id, "nft_approve",
                  token_id=CONFIG.token_id, account_id=CONFIG.registry_id)

    print(platform.view(CONFIG.nft_id, "nft_token", token_id=CONFIG.token_id))
    return platform


# ============================================================================
# PHASE 2: SECURITIZE
# ============================================================================

def step_04_securitize(platform: Platform) -> str:
    step_header(4, "Securitize",
        "Turn the token into shares. The call returns before anything is created.")

    print(f">>> platform.call('alice.near', {CONFIG.registry_id!r}, 'securitize', ...)")
    ledger_id = platform.call(
        "alice.near", CONFIG.registry_id, "securitize",
        asset_contract=CONFIG.nft_id, asset_id=CONFIG.token_id,
        shares_count=CONFIG.shares_count, decimals=CONFIG.decimals,
        exit_price=CONFIG.exit_price,
    )
    print(f"\nShare ledger identity: {ledger_id}")
    print(f"Messages queued:       {platform.pending_count()}")
    print(f"Ledger exists yet?     {platform.exists(ledger_id)}")

    section_header("Rejected: fractional share price")
    try:
        platform.call("alice.near", CONFIG.registry_id, "securitize",
                      asset_contract=CONFIG.nft_id, asset_id="1",
                      shares_count=3, decimals=0, exit_price=10)
    except FractoseError as e:
        print(f"✗ {type(e).__name__}: {e}")
    return ledger_id


def step_05_deliver(platform: Platform, ledger_id: str) -> None:
    step_header(5, "Deliver",
        "Spawn, initialize and asset transfer happen as separate messages.")

    print(">>> platform.run()")
    platform.run()

    section_header("After delivery")
    print(f"Token owner:   {platform.view(CONFIG.nft_id, 'nft_token', token_id=CONFIG.token_id)['owner_id']}")
    print(f"Total supply:  {platform.view(ledger_id, 'ft_total_supply')}")
    print(f"Alice holds:   {platform.view(ledger_id, 'ft_balance_of', account_id='alice.near')}")
    print(f"Exit price:    {units(platform.view(ledger_id, 'exit_price'))}")
    print(f"Wrapper:       {platform.view(CONFIG.registry_id, 'get_wrapper', asset_contract=CONFIG.nft_id)}")


# ============================================================================
# PHASE 3: TRADING
# ============================================================================

def step_06_register(platform: Platform, ledger_id: str) -> None:
    step_header(6, "Register a Holder",
        "An account must pay for storage before it can receive shares.")

    bounds = platform.view(ledger_id, "storage_balance_bounds")
    print(f"Storage deposit: {units(bounds['min'])}")
    platform.call("bob.near", ledger_id, "storage_deposit", deposit=STORAGE_BALANCE_MIN)
    print(platform.view(ledger_id, "storage_balance_of", account_id="bob.near"))


def step_07_transfer(platform: Platform, ledger_id: str) -> None:
    step_header(7, "Transfer Shares",
        "Shares move like any fungible token; supply never changes.")

    platform.call("alice.near", ledger_id, "ft_transfer", deposit=ONE_YOCTO,
                  receiver_id="bob.near", amount=CONFIG.shares_to_bob)
    for holder in ("alice.near", "bob.near"):
        print(f"{holder:<12} {platform.view(ledger_id, 'ft_balance_of', account_id=holder)}")
    print(f"Supply:      {platform.view(ledger_id, 'ft_total_supply')}")


# ============================================================================
# PHASE 4: EXIT
# ============================================================================

def step_08_redeem(platform: Platform, ledger_id: str) -> None:
    step_header(8, "Redeem",
        "bob tops up his shares with currency and takes the asset.")

    required = platform.view(ledger_id, "redeem_amount_of", account_id="bob.near")
    print(f"bob must pay: {units(required)}")
    platform.call("bob.near", ledger_id, "redeem", deposit=required)
    platform.run()

    section_header("After redemption")
    print(f"Token owner:     {platform.view(CONFIG.nft_id, 'nft_token', token_id=CONFIG.token_id)['owner_id']}")
    print(f"Released:        {platform.view(ledger_id, 'ft_metadata').released}")
    print(f"Vault:           {units(platform.view(ledger_id, 'vault_balance'))}")
    print(f"Alice can claim: {units(platform.view(ledger_id, 'vault_balance_of', account_id='alice.near'))}")


def step_09_claim(platform: Platform, ledger_id: str) -> None:
    step_header(9, "Claim",
        "alice burns her shares for her part of the vault. The last claim closes the ledger.")

    before = platform.balance_of("alice.near")
    platform.call("alice.near", ledger_id, "claim")
    platform.run()
    print(f"alice received: {units(platform.balance_of('alice.near') - before)} (payout + residual)")
    print(f"Ledger exists?  {platform.exists(ledger_id)}")
    print(f"Registry still maps the asset to: "
          f"{platform.view(CONFIG.registry_id, 'get_share_ledger', asset_contract=CONFIG.nft_id, asset_id=CONFIG.token_id)}")


# ============================================================================
# PHASE 5: AUDIT
# ============================================================================

def step_10_audit(platform: Platform) -> None:
    step_header(10, "Audit",
        "Every processed call left a receipt; currency was neither created nor lost.")

    print(f"Receipts:        {len(platform.receipts)}")
    print(f"Failed receipts: {len(platform.failed_receipts())}")
    for receipt in platform.failed_receipts():
        print(f"  {receipt!r}")
    print(f"Conservation:    {platform.verify_native_supply()}")


def main():
    """Run the complete tutorial."""
    print("=" * 70)
    print("       FRACTOSE - INTERACTIVE TUTORIAL")
    print("=" * 70)

    if QUICK_MODE:
        print("Running in QUICK mode (no pauses)")
    else:
        print("Running in INTERACTIVE mode (press Enter to advance)")
    wait_for_enter()

    platform = step_01_platform()
    wait_for_enter()
    step_02_registry(platform)
    wait_for_enter()
    step_03_nft(platform)
    wait_for_enter()

    ledger_id = step_04_securitize(platform)
    wait_for_enter()
    step_05_deliver(platform, ledger_id)
    wait_for_enter()

    step_06_register(platform, ledger_id)
    wait_for_enter()
    step_07_transfer(platform, ledger_id)
    wait_for_enter()

    step_08_redeem(platform, ledger_id)
    wait_for_enter()
    step_09_claim(platform, ledger_id)
    wait_for_enter()

    step_10_audit(platform)

    print("\n" + "=" * 70)
    print("       TUTORIAL COMPLETE!")
    print("=" * 70)
    print("""
    Next steps:
      - See fractose/actors/*.py for the actor implementations
      - Run tests: pytest tests/
    """)


if __name__ == "__main__":
    main()
