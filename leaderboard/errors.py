"""Error taxonomy shared by the store, its backends and the HTTP layer."""


class LeaderboardError(Exception):
    """Base class for leaderboard failures."""


class ValidationError(LeaderboardError):
    """Malformed caller input. Raised before storage is touched."""

    def __init__(self, message, field=None):
        super().__init__(message)
        self.message = message
        self.field = field


class StorageUnavailable(LeaderboardError):
    """The database could not be reached or the statement timed out.

    Nothing was committed, so the whole operation is safe to retry.
    """


class ConflictRetryExhausted(LeaderboardError):
    """Compare-and-set kept losing to concurrent writers."""

    def __init__(self, token, attempts):
        super().__init__(f'gave up on token={token!r} after {attempts} conflicting attempts')
        self.token = token
        self.attempts = attempts
