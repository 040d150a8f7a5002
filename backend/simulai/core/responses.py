from typing import Any, Optional
from pydantic import BaseModel
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi import status

#MJ: Default API Response (Success)
def success_response(message: str, data: Any = None, status_code: int = 200):

    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json")
    elif isinstance(data, list) and data and isinstance(data[0], BaseModel):
        data = [item.model_dump(mode="json") for item in data]

    return JSONResponse(
        status_code=status_code,
        content={
            "status_code": status_code,
            "success": True,
            "message": message,
            "data": jsonable_encoder(data),
        },
    )

#MJ: Default API Response (Error)
def error_response(
    message: str,
    http_status: int = status.HTTP_400_BAD_REQUEST,
    data: Any = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=http_status,
        content={
            "status_code": http_status,
            "success": False,
            "message": message,
            "data": jsonable_encoder(data),
        },
        headers=headers,
    )
