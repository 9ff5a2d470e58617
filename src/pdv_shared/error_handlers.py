"""
Centralized error handlers for Flask applications.

Every response is a JSON envelope; the staff screens never receive HTML.
"""

from http import HTTPStatus

from flask import Flask, jsonify
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from pdv_shared.errors import AuthError, ConflictError, PDVError
from pdv_shared.logging_config import get_logger
from pdv_shared.serializers import error_response

logger = get_logger(__name__)


def register_error_handlers(app: Flask) -> None:
    """
    Register centralized error handlers for the Flask app.

    Args:
        app: Flask application instance
    """

    @app.errorhandler(PDVError)
    def handle_domain_error(e: PDVError):
        """Handle the controlled errors raised by the services."""
        if isinstance(e, ConflictError):
            logger.warning("Concurrency conflict: %s", e.message)
        elif isinstance(e, AuthError):
            logger.info("Auth error (%s): %s", int(e.status), e.message)
        else:
            logger.warning("%s: %s", type(e).__name__, e.message)
        return jsonify(error_response(e.message, e.to_details())), e.status

    @app.errorhandler(PydanticValidationError)
    def handle_pydantic_validation_error(e: PydanticValidationError):
        """Handle Pydantic validation errors."""
        logger.warning("Pydantic validation error: %s", e)
        details = [
            {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
            for err in e.errors()
        ]
        return jsonify(
            error_response("Dados inválidos", {"code": "VALID_001", "details": details})
        ), HTTPStatus.BAD_REQUEST

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(e: SQLAlchemyError):
        """Handle database errors."""
        logger.error("Database error: %s", e, exc_info=True)
        return jsonify(
            error_response("Erro de banco de dados", {"code": "SYSTEM_001"})
        ), HTTPStatus.INTERNAL_SERVER_ERROR

    @app.errorhandler(HTTPException)
    def handle_http_exception(e: HTTPException):
        """Handle HTTP exceptions from Werkzeug."""
        logger.warning("HTTP exception %s: %s", e.code, e.description)
        return jsonify(error_response(e.description or str(e))), e.code

    @app.errorhandler(Exception)
    def handle_generic_exception(e: Exception):
        """Handle any unhandled exceptions."""
        logger.error("Unhandled exception: %s", e, exc_info=True)
        return jsonify(
            error_response("Erro interno do servidor", {"code": "SYSTEM_001"})
        ), HTTPStatus.INTERNAL_SERVER_ERROR

    @app.errorhandler(404)
    def handle_not_found(e):
        """Handle 404 errors."""
        return jsonify(error_response("Recurso não encontrado")), HTTPStatus.NOT_FOUND

    @app.errorhandler(405)
    def handle_method_not_allowed(e):
        """Handle 405 errors."""
        return jsonify(error_response("Método não permitido")), HTTPStatus.METHOD_NOT_ALLOWED
