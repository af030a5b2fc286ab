try:
    from backend.wordbomb.server import create_app
except ImportError:  # pragma: no cover
    from wordbomb.server import create_app

app, socketio = create_app()
