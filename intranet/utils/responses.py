"""
Response envelope builders.

Every success body is `{success: true, data, message?, pagination?}`;
failures are built by the exception handlers.
"""

from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from intranet.config.settings import settings
from intranet.utils.pagination import PageParams, Pagination


def success_response(
    status_code: int = 200,
    message: Optional[str] = None,
    data: Any = None,
    pagination: Optional[Pagination] = None,
    **extra: Any,
) -> JSONResponse:
    content: dict[str, Any] = {"success": True}
    if message:
        content["message"] = message
    content["data"] = data
    if pagination is not None:
        content["pagination"] = pagination.model_dump()
    content.update(extra)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(content))


def paginated_response(
    items: list,
    total: int,
    params: PageParams,
    message: Optional[str] = None,
    **extra: Any,
) -> JSONResponse:
    return success_response(
        status_code=200,
        message=message,
        data=items,
        pagination=Pagination.build(total, params.page, params.limit),
        **extra,
    )


def auth_response(
    status_code: int,
    message: str,
    access_token: str,
    data: Any,
    max_age: int,
) -> JSONResponse:
    """Token in the body and in the `token` cookie."""
    response = success_response(
        status_code=status_code,
        message=message,
        data=data,
        token=access_token,
    )
    response.set_cookie(
        key="token",
        value=access_token,
        max_age=max_age,
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
    )
    return response
