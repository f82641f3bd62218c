"""
Orders application.

Order fulfilment for provider operators, the settlement hold rules shared
with the refund workflow, and realtime synchronisation of the order board.

Key components:
    - Order model: Fulfilment, payment and settlement axes
    - OrderLifecycleService: accept, reject, advance, confirm cash payment
    - SettlementHoldCoordinator: Place and release settlement holds
    - RealtimeSyncAdapter: Push + poll driven, coalesced board reloads

Usage:
    from orders.services import OrderLifecycleService
    from orders.settlement import SettlementHoldCoordinator
    from orders.realtime.sync import subscribe
"""
