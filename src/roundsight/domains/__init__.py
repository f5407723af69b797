"""
Roundsight Domains - Game-specific state tracking.

This module contains:
- economy: Loadout value, loss bonus ladder and win probability lookup
"""

__all__: list[str] = []
