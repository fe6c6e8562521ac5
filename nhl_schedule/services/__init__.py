"""
Services package exports.
"""
from .games_service import GameNormalizer
from .playoffs_service import PlayoffsService
from .team_directory import TeamDirectory

__all__ = ["GameNormalizer", "PlayoffsService", "TeamDirectory"]
