"""Score domain services: the leaderboard store and its storage backends.

HTTP routes and socket handlers call into the store; the store only talks
to a backend, so it can run against the database or an in-memory fake.
"""

from .backends import InMemoryScoreBackend, PlayerRecord, ScoreBackend, SqlAlchemyScoreBackend
from .store import LeaderboardStore, clamp_limit, parse_name, parse_score, parse_token

__all__ = [
    'InMemoryScoreBackend',
    'LeaderboardStore',
    'PlayerRecord',
    'ScoreBackend',
    'SqlAlchemyScoreBackend',
    'clamp_limit',
    'parse_name',
    'parse_score',
    'parse_token',
]
