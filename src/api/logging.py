"""SQLite request logging for API."""

import logging
import sqlite3
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from fastapi import Request

from core.database import get_connection

logger = logging.getLogger(__name__)


@dataclass
class RequestLog:
    """Captured request/response data for logging."""

    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    endpoint: str = ""
    method: str = ""
    client_ip: str | None = None
    user_id: str | None = None
    action_type: str | None = None
    status_code: int = 0
    error_code: str | None = None
    error_message: str | None = None
    processing_time_ms: int = 0
    started_at: float = field(default_factory=time.time, repr=False)

    def finish(self, status_code: int, error_code: str | None = None, error_message: str | None = None):
        self.status_code = status_code
        self.error_code = error_code
        self.error_message = error_message
        self.processing_time_ms = int((time.time() - self.started_at) * 1000)


def get_client_ip(request: Request) -> str:
    """Extract client IP from request, handling proxies."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def start_request_log(request: Request, user_id: str | None = None) -> RequestLog:
    return RequestLog(
        endpoint=request.url.path,
        method=request.method,
        client_ip=get_client_ip(request),
        user_id=user_id,
    )


def log_request(log: RequestLog) -> None:
    """Write request log to SQLite database; failures are only logged."""
    try:
        conn = get_connection()
    except sqlite3.Error as e:
        logger.warning("Request log unavailable: %s", e)
        return

    try:
        conn.execute(
            """
            INSERT INTO api_requests (
                request_id, timestamp, endpoint, method, client_ip, user_id,
                action_type, status_code, error_code, error_message, processing_time_ms
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
            (
                log.request_id,
                log.timestamp,
                log.endpoint,
                log.method,
                log.client_ip,
                log.user_id,
                log.action_type,
                log.status_code,
                log.error_code,
                log.error_message,
                log.processing_time_ms,
            ),
        )
        conn.commit()
    except sqlite3.Error as e:
        logger.warning("Could not write request log %s: %s", log.request_id, e)
    finally:
        conn.close()
