import logging

from fastapi import HTTPException, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from clientdesk.services.email_service import EmailDeliveryError
from clientdesk.services.spaces_service import ImageUploadError

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def create_response(
    message: str,
    data=None,
    status_code: int = status.HTTP_200_OK,
    status_text: str | None = None
) -> JSONResponse:
    """Return a consistent API response payload and status code."""
    payload_status = status_text or ("success" if status_code < 400 else "error")
    encoded_data = jsonable_encoder(data)
    return JSONResponse(
        status_code=status_code,
        content={
            "message": message,
            "data": encoded_data,
            "status": payload_status,
            "status_code": status_code,
        },
    )


def handle_exception(error: Exception, fallback_message: str = "Internal server error") -> JSONResponse:
    """Coerce raised errors into the shared response structure."""
    if isinstance(error, HTTPException):
        detail = error.detail if isinstance(error.detail, str) else str(error.detail)
        return create_response(detail, None, error.status_code, status_text="error")

    if isinstance(error, (EmailDeliveryError, ImageUploadError)):
        logger.warning("External service failure: %s", error)
        return create_response(str(error), None, status.HTTP_502_BAD_GATEWAY, status_text="error")

    logger.error("Unhandled error: %s", error, exc_info=error)
    return create_response(fallback_message, None, status.HTTP_500_INTERNAL_SERVER_ERROR, status_text="error")


def paginate(query, page: int, page_size: int) -> dict:
    total = query.count()
    items = query.offset((page - 1) * page_size).limit(page_size).all()
    return {
        "page": page,
        "page_size": page_size,
        "count": len(items),
        "total": total,
        "has_next": page * page_size < total,
        "items": items,
    }


def paginate_list(items: list, page: int, page_size: int) -> dict:
    total = len(items)
    start = (page - 1) * page_size
    window = items[start:start + page_size]
    return {
        "page": page,
        "page_size": page_size,
        "count": len(window),
        "total": total,
        "has_next": page * page_size < total,
        "items": window,
    }
