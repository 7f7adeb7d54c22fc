from typing import Optional
from fastapi import Request
from sqlalchemy.orm import Session
from havenstay.models.audit_log import AuditLog


def request_metadata(request: Request) -> dict:
    """Client and route details of ``request`` in create_log keyword form."""
    return {
        "ip_address": request.headers.get("x-forwarded-for")
        or (request.client.host if request.client else None),
        "user_agent": request.headers.get("user-agent"),
        "request_method": request.method,
        "request_path": request.url.path,
    }


class AuditLogService:
    """Central service for writing audit log entries"""

    def create_log(
        self,
        db: Session,
        action: str,
        resource_type: str,
        resource_id: Optional[int] = None,
        user_id: Optional[int] = None,
        user_role: Optional[str] = None,
        changes: Optional[dict] = None,
        status: str = "success",
        status_code: Optional[int] = None,
        error_message: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        request_method: Optional[str] = None,
        request_path: Optional[str] = None,
        duration_ms: Optional[int] = None,
    ) -> AuditLog:
        log = AuditLog(
            user_id=user_id,
            user_role=user_role,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            changes=changes,
            status=status,
            status_code=status_code,
            error_message=error_message,
            ip_address=ip_address,
            user_agent=user_agent,
            request_method=request_method,
            request_path=request_path,
            duration_ms=duration_ms,
        )

        db.add(log)
        try:
            db.commit()
            db.refresh(log)
        except Exception:
            db.rollback()
            raise
        return log

    def log_request(
        self,
        db: Session,
        request: Request,
        action: str,
        resource_type: str,
        resource_id: Optional[int] = None,
        user: Optional[dict] = None,
        **kwargs,
    ) -> AuditLog:
        """create_log with the actor and request details filled in."""
        return self.create_log(
            db=db,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            user_id=user.get("id") if user else None,
            user_role=user.get("role") if user else None,
            **request_metadata(request),
            **kwargs,
        )
