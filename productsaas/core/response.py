"""
Error payload shared by every exception handler in main.py
"""
from typing import Any, Dict, Optional
from datetime import datetime

from fastapi import Request


def error_body(
    request: Request,
    message: str,
    error_code: str,
    details: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    return {
        "success": False,
        "message": message,
        "error_code": error_code,
        "details": details or None,
        "path": request.url.path,
        "request_id": getattr(request.state, "request_id", None),
        "timestamp": datetime.utcnow().isoformat()
    }
