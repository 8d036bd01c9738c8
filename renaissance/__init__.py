"""
Renaissance - Rules engine for a marble-market resource card game.

A deterministic, single-threaded engine that owns the authoritative game rules:
- Resource storage (warehouse depots, strongbox, transient buffer)
- The shared marble market
- Leader card effects
- The per-turn action state machine

Network transport, lobbies and scoring live outside this package.
"""

__version__ = "0.1.0"
