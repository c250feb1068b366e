"""
RogueTac - Roguelike Tic-Tac-Toe Engine

A deterministic, seedable engine for a floor-by-floor grid game against an
AI opponent. The engine provides:
- Board, lock and scoring rules
- Card and passive-ability resolution
- An enemy move heuristic
- The phase/progression state machine
"""

__version__ = "0.1.0"
