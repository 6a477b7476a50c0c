#!/usr/bin/env python3
"""
demo.py - Interactive Tutorial: Learn the Vesting Ledger Step by Step

A walkthrough of how a token vesting ledger works. Each step builds on the
previous one. Press Enter to advance.

WHAT YOU'LL LEARN:
  1-3:   Foundation      - The empty ledger, funding escrow, creating a schedule
  4-6:   Unlocking       - The cliff, linear vesting, claiming
  7-9:   Guard Rails     - Rejections, atomicity, revocation
  10-12: Reporting       - Stats and milestones, the event log, conservation

Run:
    python demo.py           # Interactive mode (press Enter for each step)
    python demo.py --quick   # Run all steps without pausing
"""

from dataclasses import dataclass
import sys

from vesting import (
    # Ledger
    VestingLedger, EventType,
    # Errors
    VestingError, get_error_message,
    # Display helpers
    to_base_units, format_amount, format_duration,
    # Gateway
    TransactionGateway,
)


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass
class DemoConfig:
    """Configuration for the tutorial. Modify these to experiment."""
    # Time is measured in blocks
    start_block: int = 1000

    admin: str = "deployer"
    beneficiary: str = "alice"

    # Token amounts (whole tokens; converted to base units)
    escrow_tokens: str = "2000"
    allocation_tokens: str = "1000"

    # Schedule shape, in blocks
    cliff_blocks: int = 100
    vesting_blocks: int = 500


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


def tokens(base_units: int) -> str:
    return f"{format_amount(base_units)} tokens"


# ============================================================================
# PHASE 1: FOUNDATION (Steps 1-3)
# ============================================================================

def step_01_empty_ledger():
    """Create an empty ledger."""
    step_header(1, "The Empty Ledger",
        "Understand the ledger's state: escrow, schedules, an event log and a clock.")

    print("""
    A vesting ledger locks tokens for beneficiaries and releases them over time.

    1. ESCROW    - One pooled balance that pays every claim
    2. SCHEDULES - At most one per beneficiary: amount, cliff, duration
    3. EVENTS    - Append-only record of every change
    4. TIME      - Logical block height, only moves forward

    verbose=True prints a line for every applied or rejected mutation.
    """)

    print(f">>> ledger = VestingLedger('tutorial', admin={CONFIG.admin!r}, "
          f"initial_time={CONFIG.start_block})")
    ledger = VestingLedger(
        "tutorial",
        admin=CONFIG.admin,
        initial_time=CONFIG.start_block,
        verbose=True,
    )

    section_header("Initial State")
    print(f"Administrator:   {ledger.admin}")
    print(f"Current block:   {ledger.get_current_time()}")
    print(f"Escrow balance:  {tokens(ledger.get_contract_balance())}")
    print(f"Schedules:       {ledger.get_total_schedules()}")
    print(f"Events:          {ledger.get_event_count()}")
    return ledger


def step_02_fund_escrow(ledger: VestingLedger):
    """Anyone can top up the escrow."""
    step_header(2, "Funding the Escrow",
        "Tokens enter the ledger only through fund().")

    amount = to_base_units(CONFIG.escrow_tokens)
    print(f">>> ledger.fund({CONFIG.admin!r}, {amount:_})")
    ledger.fund(CONFIG.admin, amount)

    section_header("Result")
    print(f"Escrow balance: {tokens(ledger.get_contract_balance())}")
    print("""
    Funding is open to any caller. Amounts are integer base units:
    1 token = 1,000,000 base units.
    """)
    return ledger


def step_03_create_schedule(ledger: VestingLedger):
    """Admin creates a schedule."""
    step_header(3, "Creating a Schedule",
        "Only the administrator can lock an allocation for a beneficiary.")

    allocation = to_base_units(CONFIG.allocation_tokens)
    print(f">>> ledger.create_schedule({CONFIG.admin!r}, {CONFIG.beneficiary!r}, "
          f"{allocation:_}, {CONFIG.cliff_blocks}, {CONFIG.vesting_blocks})")
    ledger.create_schedule(
        CONFIG.admin, CONFIG.beneficiary, allocation,
        CONFIG.cliff_blocks, CONFIG.vesting_blocks,
    )

    schedule = ledger.get_schedule(CONFIG.beneficiary)
    section_header("Schedule")
    print(f"Allocation:  {tokens(schedule.total_amount)}")
    print(f"Starts at:   block {schedule.start_time}")
    print(f"Cliff ends:  block {schedule.cliff_time} "
          f"(~{format_duration(schedule.cliff_duration)})")
    print(f"Fully vests: block {schedule.end_time} "
          f"(~{format_duration(schedule.vesting_duration)})")
    print(f"\nEscrow is unchanged: {tokens(ledger.get_contract_balance())}")
    return ledger


# ============================================================================
# PHASE 2: UNLOCKING (Steps 4-6)
# ============================================================================

def step_04_cliff(ledger: VestingLedger):
    """Nothing unlocks before the cliff."""
    step_header(4, "The Cliff",
        "See that nothing is claimable until the cliff has passed.")

    b = CONFIG.beneficiary
    print(f"Block {ledger.get_current_time()}: vested = "
          f"{tokens(ledger.calculate_vested_amount(b))}, "
          f"cliff passed = {ledger.is_cliff_passed(b)}")

    section_header("Claiming too early")
    try:
        ledger.claim(b)
    except VestingError as e:
        print(f"Claim rejected with code {e.code}: {get_error_message(e)}")
    return ledger


def step_05_linear_vesting(ledger: VestingLedger):
    """Vesting grows linearly after the cliff."""
    step_header(5, "Linear Vesting",
        "Watch the vested amount grow block by block once the cliff passes.")

    b = CONFIG.beneficiary
    curve = ledger.get_vesting_curve(b, points=6)
    print(f"{'Block':>8}  {'Vested':>20}")
    for block, vested in curve:
        print(f"{block:>8}  {tokens(vested):>20}")

    start = ledger.get_schedule(b).start_time
    print(f"\n>>> ledger.advance_time({start + 250})")
    ledger.advance_time(start + 250)
    print(f"Progress: {ledger.get_vesting_progress(b)}%")
    return ledger


def step_06_claim(ledger: VestingLedger):
    """Claim pays everything currently claimable."""
    step_header(6, "Claiming",
        "A claim withdraws vested-but-unclaimed tokens from escrow.")

    b = CONFIG.beneficiary
    paid = ledger.claim(b)
    print(f"Claimed:        {tokens(paid)}")
    print(f"Escrow balance: {tokens(ledger.get_contract_balance())}")

    section_header("Claiming again in the same block")
    try:
        ledger.claim(b)
    except VestingError as e:
        print(f"Rejected: {get_error_message(e)}")
    return ledger


# ============================================================================
# PHASE 3: GUARD RAILS (Steps 7-9)
# ============================================================================

def step_07_rejections(ledger: VestingLedger):
    """Typed errors with stable codes."""
    step_header(7, "Rejections",
        "Every failure is a typed error with a stable numeric code.")

    attempts = [
        ("non-admin creates", lambda: ledger.create_schedule("mallory", "bob", 10, 0, 10)),
        ("duplicate schedule", lambda: ledger.create_schedule(CONFIG.admin, CONFIG.beneficiary, 10, 0, 10)),
        ("cliff > duration", lambda: ledger.create_schedule(CONFIG.admin, "bob", 10, 20, 10)),
        ("unknown beneficiary claims", lambda: ledger.claim("bob")),
        ("zero funding", lambda: ledger.fund("bob", 0)),
    ]
    for label, attempt in attempts:
        try:
            attempt()
        except VestingError as e:
            print(f"  {label:<28} -> [{e.code}] {type(e).__name__}")
    return ledger


def step_08_atomicity(ledger: VestingLedger):
    """Under-funded claims pay nothing."""
    step_header(8, "Atomicity",
        "A claim escrow cannot fully cover pays nothing at all.")

    projection = ledger.clone()
    projection.verbose = False
    projection.create_schedule(CONFIG.admin, "bob", to_base_units("5000"), 0, 10)
    projection.advance_time(projection.get_current_time() + 10)
    before = projection.get_contract_balance()
    try:
        projection.claim("bob")
    except VestingError as e:
        print(f"Rejected: {get_error_message(e)}")
    print(f"Escrow before: {tokens(before)}")
    print(f"Escrow after:  {tokens(projection.get_contract_balance())}")
    print("\nThe projection ran on a clone; the tutorial ledger is untouched.")
    return ledger


def step_09_revocation(ledger: VestingLedger):
    """Revoking a schedule stops further claims."""
    step_header(9, "Revocation",
        "The administrator can deactivate a schedule. Unvested tokens stay in escrow.")

    b = CONFIG.beneficiary
    ledger.revoke(CONFIG.admin, b)
    schedule = ledger.get_schedule(b)
    print(f"Active:   {schedule.is_active}")
    print(f"Claimed:  {tokens(schedule.claimed_amount)} of {tokens(schedule.total_amount)}")
    ledger.advance_time(schedule.end_time)
    print(f"Claimable at block {schedule.end_time}: {tokens(ledger.get_claimable_amount(b))}")
    return ledger


# ============================================================================
# PHASE 4: REPORTING (Steps 10-12)
# ============================================================================

def step_10_stats(ledger: VestingLedger):
    step_header(10, "Stats and Milestones",
        "Summaries for dashboards: stats and the unlock timeline.")

    b = CONFIG.beneficiary
    stats = ledger.get_vesting_stats(b)
    print(f"Allocated:   {tokens(stats.total_allocated)}")
    print(f"Vested:      {tokens(stats.currently_vested)}")
    print(f"Claimable:   {tokens(stats.available_to_claim)}")
    print(f"Locked:      {tokens(stats.still_locked)}")
    print(f"Progress:    {stats.progress_percent}%")

    section_header("Milestones")
    for m in ledger.get_milestones(b):
        mark = "x" if m.is_passed else " "
        print(f"  [{mark}] block {m.timestamp:>5}  {m.description:<14} {tokens(m.amount)}")
    return ledger


def step_11_event_log(ledger: VestingLedger):
    step_header(11, "The Event Log",
        "Every successful mutation left exactly one event.")

    for event in ledger.get_events():
        print(f"  #{event.event_id} {event.event_type.value:<8} "
              f"{event.beneficiary:<10} {tokens(event.amount):>22} @ block {event.timestamp}")
    claims = ledger.get_events(event_type=EventType.CLAIMED)
    print(f"\n{len(claims)} claim(s) recorded")
    return ledger


def step_12_conservation(ledger: VestingLedger):
    step_header(12, "Conservation",
        "The escrow balance is always funded minus claimed.")

    result = ledger.verify_conservation()
    print(f"Funded:  {tokens(result['funded'])}")
    print(f"Claimed: {tokens(result['claimed'])}")
    print(f"Balance: {tokens(result['balance'])}")
    print(f"Valid:   {result['valid']}")

    section_header("Through the transaction gateway")
    gateway = TransactionGateway(ledger)
    tx_id = gateway.submit("claim", CONFIG.beneficiary)
    receipt = gateway.receipt(tx_id)
    print(f"{tx_id} -> {gateway.status(tx_id).value} ({receipt.error_message})")
    return ledger


def main():
    """Run the complete tutorial."""
    print("=" * 70)
    print("       VESTING LEDGER - INTERACTIVE TUTORIAL")
    print("=" * 70)
    if QUICK_MODE:
        print("Running in QUICK mode (no pauses)")
    else:
        print("Running in INTERACTIVE mode (press Enter to advance)")
    wait_for_enter()

    ledger = step_01_empty_ledger()
    steps = [
        step_02_fund_escrow,
        step_03_create_schedule,
        step_04_cliff,
        step_05_linear_vesting,
        step_06_claim,
        step_07_rejections,
        step_08_atomicity,
        step_09_revocation,
        step_10_stats,
        step_11_event_log,
        step_12_conservation,
    ]
    for step in steps:
        wait_for_enter()
        ledger = step(ledger)

    print("\n" + "=" * 70)
    print("       TUTORIAL COMPLETE!")
    print("=" * 70)
    print("""
    You've learned:
      - Escrow is funded separately from schedules
      - Nothing unlocks before the cliff, then vesting is linear
      - Mutations are atomic and each logs exactly one event
      - Revocation stops claims but keeps the record

    Next steps:
      - Run tests: pytest tests/
    """)


if __name__ == "__main__":
    main()
