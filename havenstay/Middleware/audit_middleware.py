import asyncio
import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError

from havenstay.config import settings
from havenstay.database import SessionLocal
from havenstay.services.audit_log_service import AuditLogService, request_metadata
from havenstay.services.auth_service import decode_session_token

logger = logging.getLogger(__name__)

# Thread pool for the blocking audit writes
_executor = ThreadPoolExecutor(max_workers=5)

SKIPPED_PATHS = {"/healthy", "/docs", "/openapi.json", "/redoc"}


def _log_audit_sync(
    identity: Optional[dict],
    status: str,
    status_code: Optional[int],
    error_message: Optional[str],
    metadata: dict,
    duration_ms: int,
):
    """Write one http.request audit row; failures are logged, never raised."""
    db = SessionLocal()
    try:
        AuditLogService().create_log(
            db=db,
            action="http.request",
            resource_type="http",
            user_id=identity.get("id") if identity else None,
            user_role=identity.get("role") if identity else None,
            status=status,
            status_code=status_code,
            error_message=error_message,
            duration_ms=duration_ms,
            **metadata,
        )
    except SQLAlchemyError as e:
        logger.warning("Audit logging failed for %s: %s", metadata.get("request_path"), e)
    finally:
        db.close()


async def audit_log_middleware(request: Request, call_next):
    """Record every API request in the audit log off the event loop."""
    if os.getenv("TESTING") == "true":
        return await call_next(request)

    path = request.url.path
    if path in SKIPPED_PATHS or path.startswith("/uploads/"):
        return await call_next(request)

    start_time = time.time()
    identity = decode_session_token(request.cookies.get(settings.SESSION_COOKIE_NAME))
    metadata = request_metadata(request)
    loop = asyncio.get_running_loop()

    try:
        response = await call_next(request)
    except Exception as exc:
        duration_ms = int((time.time() - start_time) * 1000)
        loop.run_in_executor(
            _executor,
            _log_audit_sync,
            identity,
            "error",
            None,
            str(exc)[:1000],
            metadata,
            duration_ms,
        )
        raise

    status_code = getattr(response, "status_code", None)
    duration_ms = int((time.time() - start_time) * 1000)
    loop.run_in_executor(
        _executor,
        _log_audit_sync,
        identity,
        "success" if status_code and status_code < 400 else "failure",
        status_code,
        None,
        metadata,
        duration_ms,
    )
    return response
