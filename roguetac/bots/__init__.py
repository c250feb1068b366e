"""
Bots module - Move selection for the opponent and for autoplay.

Provides:
- BotPolicy: Interface for bot decision-making
- EnemyAI: Win > block > random opponent
- RandomPolicy: Uniform random baseline
"""

from .policy import BotPolicy, BotDecision, RandomPolicy, playable_cells
from .enemy_ai import EnemyAI, choose_move

__all__ = [
    "BotPolicy",
    "BotDecision",
    "RandomPolicy",
    "playable_cells",
    "EnemyAI",
    "choose_move",
]
