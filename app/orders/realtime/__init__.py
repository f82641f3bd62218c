"""
Realtime order board synchronisation.

Modules:
    feed: Row-level INSERT/UPDATE events published to provider groups
    sync: Push + poll reconciliation driving one coalesced reload
    consumers: WebSocket consumer serving the operator order board
    routing: WebSocket URL patterns
"""
