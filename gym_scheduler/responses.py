# gym_scheduler/responses.py
from typing import Any, Tuple

from fastapi import Query, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def api_response(message: str, data: Any = None, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    """Success envelope: ``{success, statusCode, message, data?}``."""
    body = {"success": True, "statusCode": status_code, "message": message}
    if data is not None:
        body["data"] = jsonable_encoder(data)
    return JSONResponse(status_code=status_code, content=body)


def page_params(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
) -> Tuple[int, int]:
    return page, limit
