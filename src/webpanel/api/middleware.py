# src/webpanel/api/middleware.py - Middleware setup
from flask import jsonify, request
from datetime import datetime


def _error(message, status_code):
    return (
        jsonify(
            {
                "success": False,
                "error": message,
                "timestamp": datetime.now().isoformat(),
            }
        ),
        status_code,
    )


def setup_error_handlers(app):
    """Setup global error handlers"""

    @app.errorhandler(404)
    def not_found(error):
        return _error("Endpoint not found", 404)

    @app.errorhandler(405)
    def method_not_allowed(error):
        return _error("Method not allowed", 405)

    @app.errorhandler(500)
    def internal_error(error):
        return _error("Internal server error", 500)


def setup_jwt_handlers(jwt):
    """Return auth failures in the same envelope as every other error"""

    @jwt.unauthorized_loader
    def missing_token(reason):
        return _error("Access token required", 401)

    @jwt.invalid_token_loader
    def invalid_token(reason):
        return _error("Invalid or expired token", 401)

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return _error("Invalid or expired token", 401)


def setup_logging_middleware(app, logger):
    """Setup request logging"""

    @app.before_request
    def log_request():
        logger.debug(f"API Request: {request.method} {request.path}")

    @app.after_request
    def log_response(response):
        logger.debug(f"API Response: {response.status_code}")
        return response
