# sevadaan/core/responses.py

from typing import Any, Optional

from fastapi.encoders import jsonable_encoder


def ok(data: Any = None, message: Optional[str] = None, pagination: Optional[dict] = None) -> dict:
    body = {"success": True}
    if data is not None:
        body["data"] = jsonable_encoder(data)
    if message:
        body["message"] = message
    if pagination is not None:
        body["pagination"] = pagination
    return body
