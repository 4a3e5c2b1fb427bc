"""JSON envelope shared by every endpoint."""

from __future__ import annotations

from typing import Any, Optional

from fastapi.responses import JSONResponse


def success(data: Any = None, message: str = "OK", code: int = 200) -> JSONResponse:
    return JSONResponse(
        status_code=code,
        content={"success": True, "data": data, "message": message, "code": code},
    )


def failure(message: str, code: int, details: Optional[dict[str, Any]] = None, headers: Optional[dict[str, str]] = None) -> JSONResponse:
    body: dict[str, Any] = {"success": False, "error": message, "code": code}
    if details:
        body["details"] = details
    return JSONResponse(status_code=code, content=body, headers=headers)
