"""
Request Logging & Tracing
Request ids and structured request/response logging for the quest API.

Features:
- Unique request ID generation and propagation
- Request timing
- Request/response log lines prefixed with the request ID
- Debug mode for request bodies
"""

import contextlib
import contextvars
import json
import logging
import time
import uuid
from typing import Optional, Any

logger = logging.getLogger(__name__)

# Context variable so the id follows the request into the threadpool
_request_id: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("request_id", default=None)


# =============================================================================
# REQUEST ID MANAGEMENT
# =============================================================================

def generate_request_id(prefix: str = "req") -> str:
    """
    Generate unique request ID.

    Returns:
        str: Unique request ID (e.g., "req_123456_a1b2c3d4")
    """
    unique_id = str(uuid.uuid4())[:8]
    timestamp = str(int(time.time() * 1000))[-6:]
    return f"{prefix}_{timestamp}_{unique_id}"


def get_request_id() -> Optional[str]:
    return _request_id.get()


@contextlib.contextmanager
def request_context(request_id: Optional[str] = None):
    """
    Bind a request ID for the duration of the block.

    Example:
        with request_context() as req_id:
            logger.info(f"Processing request {req_id}")
    """
    if request_id is None:
        request_id = generate_request_id()

    token = _request_id.set(request_id)
    try:
        yield request_id
    finally:
        _request_id.reset(token)


# =============================================================================
# STRUCTURED LOGGING
# =============================================================================

class RequestLogger:
    """Structured logger for HTTP requests."""

    def __init__(self, name: str = "request_logger", debug_mode: bool = False):
        self.logger = logging.getLogger(name)
        self.debug_mode = debug_mode

    def _format_message(self, msg: str) -> str:
        request_id = get_request_id()
        prefix = f"[{request_id}]" if request_id else "[no-id]"
        return f"{prefix} {msg}"

    def log_request(self, method: str, path: str, user_id: Optional[str] = None,
                    body: Optional[Any] = None) -> None:
        msg = f"🔵 REQUEST: {method} {path}"
        if user_id:
            msg += f" | user={user_id}"
        self.logger.info(self._format_message(msg))

        if self.debug_mode and body:
            body_str = json.dumps(body, default=str)[:500] if isinstance(body, dict) else str(body)[:500]
            self.logger.debug(self._format_message(f"  body: {body_str}"))

    def log_response(self, status_code: int, elapsed_ms: float, error: Optional[str] = None) -> None:
        if error:
            msg = f"🔴 RESPONSE: {status_code} | {elapsed_ms:.0f}ms | ERROR: {error}"
            self.logger.error(self._format_message(msg))
        elif status_code >= 400:
            self.logger.warning(self._format_message(f"🟠 RESPONSE: {status_code} | {elapsed_ms:.0f}ms"))
        else:
            self.logger.info(self._format_message(f"🟢 RESPONSE: {status_code} | {elapsed_ms:.0f}ms"))
