import logging
import time
from typing import Any, Dict

from fastapi import Request

logger = logging.getLogger(__name__)

SENSITIVE_KEYS = ("password", "token", "apikey", "api_key", "secret", "authorization")


def sanitize_metadata(metadata: Dict[str, Any]) -> Dict[str, Any]:
    """Redact sensitive values before they reach the logs."""
    sanitized: Dict[str, Any] = {}
    for key, value in metadata.items():
        lowered = key.lower()
        if any(s in lowered for s in SENSITIVE_KEYS):
            sanitized[key] = "[REDACTED]"
        elif isinstance(value, dict):
            sanitized[key] = sanitize_metadata(value)
        else:
            sanitized[key] = value
    return sanitized


def log_request(method: str, path: str) -> None:
    """Simple request logging"""
    logger.info(f"{method} {path}")


def log_error(error: str, method: str, path: str) -> None:
    """Simple error logging"""
    logger.error(f"Error in {method} {path}: {error}")


async def request_logging_middleware(request: Request, call_next):
    log_request(request.method, request.url.path)
    start = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception as e:
        log_error(str(e), request.method, request.url.path)
        raise
    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.debug(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f}ms)")
    return response
