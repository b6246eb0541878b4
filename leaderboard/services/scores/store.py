from datetime import datetime, timezone
from numbers import Integral, Real
from typing import Callable, List, Optional

from leaderboard.errors import ValidationError
from .backends import PlayerRecord, ScoreBackend

MIN_LIMIT = 1
MAX_LIMIT = 100
# best_score is a 32-bit INTEGER column
MIN_SCORE = -2 ** 31
MAX_SCORE = 2 ** 31 - 1


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_token(token) -> str:
    if not isinstance(token, str) or not token:
        raise ValidationError('token required', field='token')
    return token


def parse_score(score) -> int:
    """Accept integers, and floats with no fractional part; reject the rest.

    ``bool`` is an int subclass but never a score.
    """
    if isinstance(score, bool):
        raise ValidationError('numeric score required', field='score')
    if isinstance(score, Integral):
        value = int(score)
    elif isinstance(score, Real) and float(score).is_integer():
        value = int(score)
    else:
        raise ValidationError('numeric score required', field='score')
    if not MIN_SCORE <= value <= MAX_SCORE:
        raise ValidationError('score out of range', field='score')
    return value


def parse_name(name) -> Optional[str]:
    # Empty names count as absent so they never overwrite a stored one
    if name is None or name == '':
        return None
    if not isinstance(name, str):
        raise ValidationError('name must be a string', field='name')
    return name


def clamp_limit(limit, low=MIN_LIMIT, high=MAX_LIMIT) -> int:
    try:
        value = int(limit)
    except (TypeError, ValueError):
        raise ValidationError('limit must be an integer', field='limit') from None
    return max(low, min(high, value))


class LeaderboardStore:
    """Best-score bookkeeping and ranking over a ScoreBackend.

    Every write goes through ``backend.upsert_max`` so the max-merge stays
    atomic per token; the store never reads a score back to decide what to
    write.
    """

    def __init__(self, backend: ScoreBackend, clock: Callable[[], datetime] = utcnow,
                 max_limit: int = MAX_LIMIT):
        self.backend = backend
        self.clock = clock
        self.max_limit = max(MIN_LIMIT, min(MAX_LIMIT, int(max_limit)))

    def submit_score(self, token, score, name=None) -> int:
        token = parse_token(token)
        score = parse_score(score)
        name = parse_name(name)
        return self.backend.upsert_max(token, score, name, self.clock())

    def list_top(self, limit) -> List[PlayerRecord]:
        records = self.backend.query_top_n(clamp_limit(limit, high=self.max_limit))
        # updated_at only orders the page
        return [r._replace(updated_at=None) for r in records]

    def get_player(self, token) -> PlayerRecord:
        token = parse_token(token)
        record = self.backend.get_by_key(token)
        if record is None:
            return PlayerRecord(token=token, name=None, best_score=0)
        return record
