"""Game domain services: roles, scoring, lobby, table state and timers.

This package contains the pure(ish) game logic that the Socket.IO handlers
and HTTP routes drive, keeping transport concerns separated from the round
lifecycle itself.
"""

from .table import GameTable, Phase

__all__ = ['GameTable', 'Phase']
