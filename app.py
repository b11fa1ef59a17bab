from flask import Flask, jsonify
from flask_cors import CORS
import os
import logging
from datetime import datetime
from dotenv import load_dotenv

load_dotenv()

# Blueprints and error handlers
from lostfound.routes import register_error_handlers
from lostfound.routes.item_routes import item_bp
from lostfound.routes.claim_routes import claim_bp
from lostfound.routes.admin_routes import admin_bp


def create_app(config_overrides=None):
    app = Flask(__name__)
    app.secret_key = os.environ.get('SECRET_KEY') or os.urandom(24)
    if config_overrides:
        app.config.update(config_overrides)

    # Enable CORS for all routes
    CORS(app)

    # Register blueprints
    app.register_blueprint(item_bp)
    app.register_blueprint(claim_bp)
    app.register_blueprint(admin_bp)
    register_error_handlers(app)

    # Health check endpoint for network connectivity testing
    @app.route('/api/health', methods=['GET'])
    def health_check():
        return jsonify({
            "status": "healthy",
            "timestamp": datetime.now().isoformat(),
            "service": "lostfound-main"
        })

    return app


app = create_app()

if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s %(name)s: %(message)s')
    # Allow overriding host/port via environment for testing
    host = os.environ.get('HOST', '0.0.0.0')
    port = int(os.environ.get('PORT', '5000'))
    app.run(debug=os.environ.get('FLASK_DEBUG', '').lower() in ('1', 'true', 'yes'), host=host, port=port)
