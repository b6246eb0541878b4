from flask import jsonify
from leaderboard.errors import ConflictRetryExhausted, StorageUnavailable, ValidationError


def register_error_handlers(flask_app):
    """Map leaderboard errors to JSON responses.

    Client errors name the failed precondition; server errors stay generic
    and only the log carries the cause.
    """

    @flask_app.errorhandler(ValidationError)
    def handle_validation_error(exc):
        body = {'error': exc.message}
        if exc.field:
            body['field'] = exc.field
        return jsonify(body), 400

    @flask_app.errorhandler(StorageUnavailable)
    @flask_app.errorhandler(ConflictRetryExhausted)
    def handle_server_error(exc):
        flask_app.logger.exception(f'[internal] {exc}')
        return jsonify({'error': 'internal'}), 500
