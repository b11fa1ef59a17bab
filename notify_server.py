#!/usr/bin/env python3
"""
Notification relay server.
Verifies the caller's Firebase ID token, re-reads the claim and pushes an FCM
message to the maintainer (claim created) or claimant (claim decided).
"""

from flask import Flask, jsonify
from flask_cors import CORS
import os
import logging
from datetime import datetime
from dotenv import load_dotenv

load_dotenv()

from lostfound.routes import register_error_handlers
from lostfound.routes.notify_routes import notify_bp


def create_notify_app(config_overrides=None):
    app = Flask(__name__)
    if config_overrides:
        app.config.update(config_overrides)

    CORS(app)
    app.register_blueprint(notify_bp)
    register_error_handlers(app)

    @app.route('/api/health', methods=['GET'])
    def health_check():
        return jsonify({
            "status": "healthy",
            "timestamp": datetime.now().isoformat(),
            "service": "lostfound-notify"
        })

    return app


app = create_notify_app()

if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s %(name)s: %(message)s')
    port = int(os.environ.get('NOTIFY_PORT') or os.environ.get('PORT', '8080'))
    print(f"Notify server running on {port}")
    app.run(host=os.environ.get('HOST', '0.0.0.0'), port=port)
