from flask import jsonify
from werkzeug.exceptions import HTTPException

from ..errors import LostFoundError


def register_error_handlers(app):
    """Render service errors as JSON with the status code they carry."""

    @app.errorhandler(LostFoundError)
    def handle_lostfound_error(e):
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        if isinstance(e, HTTPException):
            return jsonify({'success': False, 'error': e.description, 'code': e.name.upper().replace(' ', '_')}), e.code
        app.logger.exception('Unhandled error: %s', str(e))
        return jsonify({'success': False, 'error': 'Internal server error', 'code': 'INTERNAL_ERROR'}), 500
