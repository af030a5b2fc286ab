from __future__ import annotations

import logging
import os
import sys

from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from werkzeug.middleware.proxy_fix import ProxyFix

from .config import Config
from .game.service import GameService
from .realtime.events import SocketIOSink
from .realtime.handlers import register_socketio_handlers
from .routes.health import bp as health_bp
from .routes.rooms import bp as rooms_bp
from .routes.validate import bp as validate_bp
from .words.oracle import WordOracle

logger = logging.getLogger(__name__)


def _async_mode(testing: bool) -> str:
    env_async_mode = os.environ.get("SOCKETIO_ASYNC_MODE", "").strip()
    if env_async_mode:
        return env_async_mode
    # Default choice:
    # - tests, Windows and Python >= 3.13: threading
    # - otherwise: eventlet
    if testing or sys.platform.startswith("win") or sys.version_info >= (3, 13):
        return "threading"
    return "eventlet"


def create_app(config_class=Config, oracle=None, timers=None, rng=None) -> tuple[Flask, SocketIO]:
    app = Flask(__name__)
    app.config.from_object(config_class)
    testing = bool(app.config.get("TESTING", False))

    if app.config.get("TRUST_PROXY_HEADERS", False):
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)

    cors_origins = app.config.get("CORS_ORIGINS", "*")
    CORS(app, resources={r"/api/*": {"origins": cors_origins}})

    socketio = SocketIO(
        app,
        cors_allowed_origins=cors_origins,
        async_mode=_async_mode(testing),
    )

    service = GameService(
        sink=SocketIOSink(socketio),
        oracle=oracle or WordOracle.from_config(config_class),
        start_background_task=socketio.start_background_task,
        sleep=socketio.sleep,
        config=config_class,
        inline=testing,
        timers=timers,
        rng=rng,
    )
    app.extensions["wordbomb"] = service

    app.register_blueprint(health_bp, url_prefix="/api")
    app.register_blueprint(rooms_bp, url_prefix="/api")
    app.register_blueprint(validate_bp, url_prefix="/api")

    register_socketio_handlers(socketio, service)

    if not testing:
        service.start_reaper()

    logger.info("WordBomb server ready (async_mode=%s)", socketio.async_mode)
    return app, socketio
