"""
Middlewares pour Bookkeeper.

- RequestIDMiddleware: propage X-Request-ID
- UserContextMiddleware: extrait l'utilisateur appelant
"""
from bookkeeper.middleware.exception_handler import register_exception_handlers
from bookkeeper.middleware.request_id import RequestIDMiddleware
from bookkeeper.middleware.user_context import UserContextMiddleware

__all__ = ["RequestIDMiddleware", "UserContextMiddleware", "register_exception_handlers"]
