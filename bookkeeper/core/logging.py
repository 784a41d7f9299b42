"""
Logging structure pour Bookkeeper.

Chaque ligne de log porte le contexte de la requete en cours (request_id,
user_id, tenant_id), pose par les middlewares et par la resolution du
tenant. Hors dev les logs sont en JSON, une ligne par evenement.

Usage:
    from bookkeeper.core.logging import get_logger

    logger = get_logger(__name__)
    logger.info("Ecriture enregistree", extra={"entry_id": 42})
"""
import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Set

request_id_var: ContextVar[str] = ContextVar("request_id", default="")
tenant_id_var: ContextVar[int] = ContextVar("tenant_id", default=0)
user_id_var: ContextVar[int] = ContextVar("user_id", default=0)

# Cles d'extra dont la valeur n'est jamais ecrite
SENSITIVE_FIELDS: Set[str] = {
    "password",
    "secret",
    "token",
    "authorization",
    "database_url",
}

REDACTED = "[REDACTED]"

# Attributs natifs d'un LogRecord (tout le reste vient de extra=)
_RECORD_FIELDS = set(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


def sanitize_dict(data: Dict[str, Any]) -> Dict[str, Any]:
    """Copie de data ou les valeurs des cles sensibles sont masquees (recursif)."""
    if not isinstance(data, dict):
        return data
    return {
        key: sanitize_dict(value) if isinstance(value, dict)
        else REDACTED if any(field in key.lower() for field in SENSITIVE_FIELDS)
        else value
        for key, value in data.items()
    }


def current_context() -> Dict[str, Any]:
    """Contexte de requete renseigne (les valeurs vides sont omises)."""
    context = {
        "request_id": request_id_var.get(),
        "user_id": user_id_var.get(),
        "tenant_id": tenant_id_var.get(),
    }
    return {key: value for key, value in context.items() if value}


class JSONFormatter(logging.Formatter):
    """Une ligne JSON par log: horodatage UTC, niveau, logger, message, contexte, extras."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **current_context(),
        }

        extras = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_FIELDS and not key.startswith("_")
        }
        if extras:
            payload["extra"] = sanitize_dict(extras)
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


class ConsoleFormatter(logging.Formatter):
    """
    Format lisible pour le developpement:
        [INFO] bookkeeper.services.ledger.journal - Ecriture ... (tenant=1 request_id=3f2a9c1e)
    """

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        line = f"{color}[{record.levelname}]{self.RESET} {record.name} - {record.getMessage()}"

        context = current_context()
        tags = []
        if "tenant_id" in context:
            tags.append(f"tenant={context['tenant_id']}")
        if "request_id" in context:
            tags.append(f"request_id={context['request_id'][:8]}")
        if tags:
            line = f"{line} ({' '.join(tags)})"

        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def configure_logging(level: str = "INFO", json_format: bool = True) -> None:
    """
    Installe un handler stdout unique sur le root logger.

    Args:
        level: DEBUG, INFO, WARNING, ERROR ou CRITICAL
        json_format: JSON (True) ou console coloree (False)
    """
    numeric_level = getattr(logging, level.upper())
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    handler.setFormatter(JSONFormatter() if json_format else ConsoleFormatter())

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    # SQL et acces HTTP seulement en cas de probleme
    for noisy in ("sqlalchemy.engine", "uvicorn.access", "httpx"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def set_request_context(
    request_id: Optional[str] = None,
    tenant_id: Optional[int] = None,
    user_id: Optional[int] = None
) -> None:
    """Renseigne le contexte de log; les arguments absents ne changent rien."""
    if request_id:
        request_id_var.set(request_id)
    if tenant_id:
        tenant_id_var.set(tenant_id)
    if user_id:
        user_id_var.set(user_id)


def clear_request_context() -> None:
    """Remet le contexte a vide en fin de requete."""
    request_id_var.set("")
    tenant_id_var.set(0)
    user_id_var.set(0)
