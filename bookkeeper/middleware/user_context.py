"""
User Context Middleware pour Bookkeeper.

Extrait l'identite de l'appelant (header X-User-ID par defaut) et la
stocke dans request.state.user_id. Le tenant est resolu plus tard,
a la demande, par la dependance get_current_tenant_id.
"""
import logging
from typing import Set

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from bookkeeper.core.config import get_settings
from bookkeeper.core.logging import set_request_context

logger = logging.getLogger(__name__)


class UserContextMiddleware(BaseHTTPMiddleware):
    """
    Middleware d'extraction de l'utilisateur appelant.

    - Valide que l'identifiant est un entier positif
    - Stocke dans request.state.user_id
    - Exclut health et documentation
    """

    EXCLUDED_PATHS: Set[str] = {
        "/",
        "/health",
        "/ready",
        "/docs",
        "/redoc",
        "/openapi.json",
    }

    EXCLUDED_PREFIXES: Set[str] = {
        "/docs",
        "/redoc",
    }

    def __init__(self, app, required: bool = True, header_name: str = None):
        """
        Args:
            app: L'application FastAPI
            required: Si True, retourne 401 si header manquant (hors excluded paths)
            header_name: Nom du header, USER_HEADER des settings par defaut
        """
        super().__init__(app)
        self.required = required
        self.header_name = header_name or get_settings().USER_HEADER

    def _is_excluded(self, path: str) -> bool:
        if path in self.EXCLUDED_PATHS:
            return True
        return any(path.startswith(prefix) for prefix in self.EXCLUDED_PREFIXES)

    async def dispatch(self, request: Request, call_next) -> Response:
        path = request.url.path
        request.state.user_id = None

        if self._is_excluded(path):
            return await call_next(request)

        raw_user_id = request.headers.get(self.header_name)
        if not raw_user_id:
            if self.required:
                return JSONResponse(
                    status_code=401,
                    content={
                        "error": "USER_REQUIRED",
                        "message": f"Header {self.header_name} requis",
                    },
                )
            return await call_next(request)

        try:
            user_id = int(raw_user_id)
            if user_id <= 0:
                raise ValueError("User ID must be positive")
        except ValueError:
            return JSONResponse(
                status_code=401,
                content={
                    "error": "INVALID_USER",
                    "message": f"{self.header_name} invalide: doit etre un entier positif",
                },
            )

        request.state.user_id = user_id
        set_request_context(user_id=user_id)
        logger.debug(f"Utilisateur {user_id} pour {request.method} {path}")

        return await call_next(request)
