"""Client-side error reporting.

The web frontend posts uncaught errors here; they are written to the service
log (with user agent and client address) so they show up next to the server
side logs.
"""

import logging

from fastapi import APIRouter, Depends, Request

from ..rate_limit import RATE_LIMITS, client_identifier, rate_limited
from ..schemas import ClientErrorReport

logger = logging.getLogger(__name__)

router = APIRouter(tags=["errors"])

_SEVERITY_LEVELS = {
    "low": logging.INFO,
    "medium": logging.WARNING,
    "high": logging.ERROR,
    "critical": logging.CRITICAL,
}


@router.post("/log-error", dependencies=[Depends(rate_limited(RATE_LIMITS["api_write"], "api_write"))])
def log_client_error(report: ClientErrorReport, request: Request):
    logger.log(
        _SEVERITY_LEVELS[report.severity],
        "client error: %s",
        report.message,
        extra={
            "severity": report.severity,
            "url": report.url,
            "stack": report.stack,
            "context": report.context,
            "client_timestamp": report.timestamp,
            "user_agent": request.headers.get("user-agent"),
            "client_ip": client_identifier(request),
        },
    )
    return {"ok": True}
