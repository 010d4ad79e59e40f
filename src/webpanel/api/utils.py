# src/webpanel/api/utils.py - Utility functions and response helpers
from flask import jsonify, request
from flask_jwt_extended import get_jwt_identity
from functools import wraps
import traceback

from ..core.exceptions import PanelError, ValidationError


class APIResponse:
    """Standardized API response helpers"""

    @staticmethod
    def success(data=None, message=None, status_code=200):
        response = {"success": True}
        if data is not None:
            response.update(data)
        if message:
            response["message"] = message
        return jsonify(response), status_code

    @staticmethod
    def created(data=None, message=None):
        return APIResponse.success(data, message, 201)

    @staticmethod
    def error(message, status_code=500):
        return jsonify({"success": False, "error": message}), status_code

    @staticmethod
    def bad_request(message):
        return APIResponse.error(message, 400)

    @staticmethod
    def server_error(message):
        return APIResponse.error(message, 500)


def handle_api_errors(logger):
    """Decorator for consistent error handling"""

    def decorator(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            try:
                return f(*args, **kwargs)
            except PanelError as e:
                if e.status_code >= 500:
                    logger.error(f"API error in {f.__name__}: {e}")
                else:
                    logger.info(f"Rejected request in {f.__name__}: {e}")
                return APIResponse.error(str(e), e.status_code)
            except Exception as e:
                logger.error(f"API error in {f.__name__}: {e}")
                logger.debug(traceback.format_exc())
                return APIResponse.server_error(str(e))

        return wrapper

    return decorator


def get_json_body():
    """Request body as a dict; raises ValidationError for anything else"""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def check(result):
    """Raise the message of a failed (valid, message) validator result"""
    valid, message = result
    if not valid:
        raise ValidationError(message)


def current_owner():
    identity = get_jwt_identity()
    return str(identity) if identity is not None else None
