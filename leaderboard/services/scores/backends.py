"""Storage backends for player scores.

Every backend honours the same three-call contract: ``upsert_max`` creates
or raises a player's best score atomically, ``query_top_n`` reads a bounded
ranked page, and ``get_by_key`` looks up a single player.
"""

import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, NamedTuple, Optional

from sqlalchemy import case, func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from leaderboard.errors import ConflictRetryExhausted, StorageUnavailable


class PlayerRecord(NamedTuple):
    token: str
    name: Optional[str]
    best_score: int
    updated_at: Optional[datetime] = None

    def to_dict(self):
        return {
            'token': self.token,
            'name': self.name,
            'best_score': self.best_score,
        }


def rank_key(record: PlayerRecord):
    """Best score first, earliest to reach it next, token last for a total order."""
    return (-record.best_score, record.updated_at, record.token)


class ScoreBackend(ABC):
    @abstractmethod
    def upsert_max(self, token: str, score: int, name: Optional[str], now: datetime) -> int:
        raise NotImplementedError

    @abstractmethod
    def query_top_n(self, n: int) -> List[PlayerRecord]:
        raise NotImplementedError

    @abstractmethod
    def get_by_key(self, token: str) -> Optional[PlayerRecord]:
        raise NotImplementedError


class InMemoryScoreBackend(ScoreBackend):
    """Process-local backend; the lock makes each upsert a single critical section."""

    def __init__(self):
        self._records = {}
        self._lock = threading.Lock()

    def upsert_max(self, token, score, name, now):
        with self._lock:
            current = self._records.get(token)
            if current is None:
                record = PlayerRecord(token, name, score, now)
            else:
                record = PlayerRecord(
                    token,
                    name or current.name,
                    max(current.best_score, score),
                    now,
                )
            self._records[token] = record
            return record.best_score

    def query_top_n(self, n):
        with self._lock:
            records = list(self._records.values())
        return sorted(records, key=rank_key)[:n]

    def get_by_key(self, token):
        with self._lock:
            return self._records.get(token)


class SqlAlchemyScoreBackend(ScoreBackend):
    """Backend over the ``scores`` table.

    PostgreSQL and SQLite get one ``INSERT ... ON CONFLICT DO UPDATE``
    statement that keeps the greater score. Any other dialect falls back to
    compare-and-set: read the row, write only if it is unchanged, retry on
    conflict up to ``max_retries`` times.
    """

    NATIVE_UPSERT_DIALECTS = {'postgresql': pg_insert, 'sqlite': sqlite_insert}

    def __init__(self, session, model=None, max_retries=5, native_upsert=True):
        if model is None:
            from leaderboard.models import PlayerScore
            model = PlayerScore
        self.session = session
        self.model = model
        self.max_retries = max(1, int(max_retries))
        self.native_upsert = native_upsert

    def _dialect_insert(self):
        if not self.native_upsert:
            return None
        dialect = self.session.get_bind().dialect.name
        return self.NATIVE_UPSERT_DIALECTS.get(dialect)

    def _storage_failure(self, exc):
        self.session.rollback()
        return StorageUnavailable(f'{type(exc).__name__} while talking to the score database')

    def upsert_max(self, token, score, name, now):
        try:
            insert = self._dialect_insert()
            if insert is not None:
                return self._upsert_native(insert, token, score, name, now)
            return self._upsert_compare_and_set(token, score, name, now)
        except (DBAPIError, PoolTimeoutError) as exc:
            raise self._storage_failure(exc) from exc

    def _upsert_native(self, insert, token, score, name, now):
        model = self.model
        stmt = insert(model).values(token=token, name=name, best_score=score, updated_at=now)
        excluded = stmt.excluded
        stmt = stmt.on_conflict_do_update(
            index_elements=['token'],
            set_={
                'best_score': case(
                    (excluded.best_score > model.best_score, excluded.best_score),
                    else_=model.best_score,
                ),
                'name': func.coalesce(excluded.name, model.name),
                'updated_at': excluded.updated_at,
            },
        ).returning(model.best_score)
        best = self.session.execute(stmt).scalar_one()
        self.session.commit()
        return best

    def _upsert_compare_and_set(self, token, score, name, now):
        model = self.model
        for _attempt in range(self.max_retries):
            current = self.session.execute(
                select(model.best_score, model.updated_at).where(model.token == token)
            ).first()

            if current is None:
                try:
                    self.session.execute(
                        model.__table__.insert().values(
                            token=token, name=name, best_score=score, updated_at=now
                        )
                    )
                    self.session.commit()
                    return score
                except IntegrityError:
                    # Someone else created the row first
                    self.session.rollback()
                    continue

            best = max(current.best_score, score)
            values = {'best_score': best, 'updated_at': now}
            if name:
                values['name'] = name
            result = self.session.execute(
                update(model)
                .where(
                    model.token == token,
                    model.best_score == current.best_score,
                    model.updated_at == current.updated_at,
                )
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 1:
                self.session.commit()
                return best
            self.session.rollback()
        raise ConflictRetryExhausted(token, self.max_retries)

    def query_top_n(self, n):
        model = self.model
        try:
            rows = self.session.execute(
                select(model.token, model.name, model.best_score, model.updated_at)
                .order_by(model.best_score.desc(), model.updated_at.asc(), model.token.asc())
                .limit(n)
            ).all()
        except (DBAPIError, PoolTimeoutError) as exc:
            raise self._storage_failure(exc) from exc
        return [PlayerRecord(*row) for row in rows]

    def get_by_key(self, token):
        model = self.model
        try:
            row = self.session.execute(
                select(model.token, model.name, model.best_score, model.updated_at)
                .where(model.token == token)
            ).first()
        except (DBAPIError, PoolTimeoutError) as exc:
            raise self._storage_failure(exc) from exc
        return PlayerRecord(*row) if row is not None else None
