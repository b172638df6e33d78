"""
Flask application factory and main application entry point.

This module creates and configures the Flask application instance
with WebSocket support for real-time bingo rooms.
"""

import os
import random
import sys

from flask import Flask
from flask_socketio import SocketIO
from flask_cors import CORS
from loguru import logger

from .bingo_state import GameMode, NumberGenerator
from .room_store import RoomStore

DEFAULT_CONFIG = {
    'SECRET_KEY': 'dev-key-change-in-production',
    'DEBUG': False,
    'CORS_ORIGINS': '*',
    'LOG_LEVEL': 'INFO',
    'DEFAULT_GAME_MODE': 'CLASSIC',
    'DEFAULT_NUMBER_GENERATOR': 'EXTERNAL',
    'RANDOM_SEED': None,
}

ENV_OVERRIDES = ('SECRET_KEY', 'CORS_ORIGINS', 'LOG_LEVEL')


def create_app(config=None):
    """
    Create and configure the Flask application.

    Args:
        config: Dictionary of configuration values, applied last

    Returns:
        Tuple of the Flask application and its SocketIO server
    """
    app = Flask(__name__)

    app.config.update(DEFAULT_CONFIG)
    for key in ENV_OVERRIDES:
        if os.environ.get(key):
            app.config[key] = os.environ[key]
    if os.environ.get('FLASK_DEBUG'):
        app.config['DEBUG'] = os.environ['FLASK_DEBUG'].lower() in ('1', 'true', 'yes')
    if config:
        app.config.update(config)

    # Configure logging
    logger.remove()  # Remove default handler
    logger.add(
        sys.stderr,
        format="{time} | {level} | {message}",
        level=app.config['LOG_LEVEL'],
        colorize=True
    )
    logger.info("Starting bingo server")

    cors_origins = app.config['CORS_ORIGINS']
    CORS(app, origins=cors_origins)

    socketio = SocketIO(app, cors_allowed_origins=cors_origins)

    rng = random.Random(app.config['RANDOM_SEED'])
    store = RoomStore(rng=rng)
    app.extensions['room_store'] = store

    from . import api
    app.register_blueprint(api.api_bp)

    from . import websocket_handlers
    websocket_handlers.init_socketio_handlers(
        socketio,
        store,
        rng=rng,
        default_game_mode=GameMode(app.config['DEFAULT_GAME_MODE']),
        default_number_generator=NumberGenerator(app.config['DEFAULT_NUMBER_GENERATOR']),
    )

    return app, socketio
