"""
Development server entry point.

Run this script to start the Flask development server with WebSocket support.
"""

import os

from src.bingo.app import create_app

if __name__ == '__main__':
    app, socketio = create_app()
    host = os.environ.get('HOST', '0.0.0.0')
    port = int(os.environ.get('PORT', '5000'))
    socketio.run(app, debug=app.config['DEBUG'], host=host, port=port, allow_unsafe_werkzeug=True)
