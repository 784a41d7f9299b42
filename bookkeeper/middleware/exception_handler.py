"""
Exception Handler pour Bookkeeper.

Toutes les erreurs sortent au meme format JSON:
    {"error": CODE, "message": ..., "details"?: {...}, "request_id"?: ...}

Les erreurs metier (AppException) portent deja leur code et leur statut;
les erreurs framework sont traduites ici.
"""
import logging
from typing import Any, Dict, Optional, Union

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from bookkeeper.core.exceptions import AppException

logger = logging.getLogger(__name__)

# Code d'erreur des HTTPException levees par le framework (route inconnue, methode...)
HTTP_ERROR_CODES: Dict[int, str] = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    422: "VALIDATION_ERROR",
}


def _request_context(request: Request) -> Dict[str, Any]:
    """request_id / user / tenant connus pour la requete, pour les logs."""
    state = request.state
    return {
        "request_id": getattr(state, "request_id", None),
        "user_id": getattr(state, "user_id", None),
        "tenant_id": getattr(state, "tenant_id", None),
        "path": request.url.path,
    }


def create_error_response(
    status_code: int,
    error_code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    request_id: Optional[str] = None
) -> JSONResponse:
    """
    Construit la response d'erreur.

    details et request_id ne sont inclus que s'ils sont renseignes.
    """
    content: Dict[str, Any] = {"error": error_code, "message": message}
    if details:
        content["details"] = details
    if request_id:
        content["request_id"] = request_id
    return JSONResponse(status_code=status_code, content=content)


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    Erreurs metier du grand livre.

    Les refus (4xx) sont le fonctionnement normal d'un livre qui protege
    ses invariants: log INFO. Les 5xx sont loggees en ERROR avec le detail.
    """
    context = _request_context(request)
    if exc.status_code >= 500:
        logger.error(
            f"{exc.error_code} sur {context['path']}: {exc.message}",
            extra={**context, "details": exc.details}
        )
    else:
        logger.info(f"{exc.error_code} sur {context['path']}: {exc.message}")

    return create_error_response(
        status_code=exc.status_code,
        error_code=exc.error_code,
        message=exc.message,
        details=exc.details or None,
        request_id=context["request_id"]
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return create_error_response(
        status_code=exc.status_code,
        error_code=HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR"),
        message=str(exc.detail),
        request_id=getattr(request.state, "request_id", None)
    )


async def validation_exception_handler(
    request: Request,
    exc: Union[RequestValidationError, ValidationError]
) -> JSONResponse:
    """
    Corps ou parametres invalides (montant non numerique, champ inconnu...).

    Chaque erreur est reduite a field / message / type.
    """
    errors = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ())),
            "message": error.get("msg", "Invalid value"),
            "type": error.get("type", "unknown"),
        }
        for error in exc.errors()
    ]
    return create_error_response(
        status_code=422,
        error_code="VALIDATION_ERROR",
        message="Request validation failed",
        details={"errors": errors},
        request_id=getattr(request.state, "request_id", None)
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Derniere barriere.

    Base de donnees indisponible -> 503, tout le reste -> 500.
    Le message interne n'est jamais renvoye au client.
    """
    context = _request_context(request)
    if isinstance(exc, SQLAlchemyError):
        logger.error(f"Base de donnees indisponible: {type(exc).__name__}: {exc}", extra=context)
        status_code, error_code = 503, "SERVICE_UNAVAILABLE"
    else:
        logger.critical(f"Erreur non geree: {type(exc).__name__}: {exc}", extra=context, exc_info=True)
        status_code, error_code = 500, "INTERNAL_ERROR"

    return create_error_response(
        status_code=status_code,
        error_code=error_code,
        message="An unexpected error occurred",
        request_id=context["request_id"]
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Branche les handlers sur l'application."""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
