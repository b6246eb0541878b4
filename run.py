import atexit

from leaderboard import create_app, shutdown_store, socketio

app = create_app()
atexit.register(shutdown_store, app)

if __name__ == '__main__':
    app.logger.info(f"Leaderboard API listening on {app.config['PORT']}")
    socketio.run(app, host='0.0.0.0', port=app.config['PORT'])
