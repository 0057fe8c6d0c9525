import logging

from fastapi import Request
from fastapi.exceptions import HTTPException, RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.middleware.base import BaseHTTPMiddleware

from story_auth.errors import MESSAGES, AuthError, ErrorCode

logger = logging.getLogger(__name__)


def _error_body(code: str, message: str, **extra) -> dict:
    body = {"success": False, "code": code, "message": message}
    body.update(extra)
    return body


async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content=_error_body(
            ErrorCode.VALIDATION_ERROR,
            MESSAGES[ErrorCode.VALIDATION_ERROR],
            details=[{"loc": list(err.get("loc", ())), "msg": err.get("msg")} for err in exc.errors()],
        ),
    )


def register_exception_handlers(app) -> None:
    app.add_exception_handler(AuthError, auth_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Last line of defence: nothing internal leaks into a response body."""

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)

        except AuthError as ae:
            return JSONResponse(status_code=ae.status_code, content=ae.to_dict())

        except ValidationError as ve:
            return JSONResponse(
                status_code=422,
                content=_error_body(
                    ErrorCode.VALIDATION_ERROR,
                    MESSAGES[ErrorCode.VALIDATION_ERROR],
                    details=[{"loc": list(err.get("loc", ())), "msg": err.get("msg")} for err in ve.errors()],
                ),
            )

        except HTTPException as he:
            return JSONResponse(
                status_code=he.status_code,
                content=_error_body("HTTP_EXCEPTION", str(he.detail)),
            )

        except Exception:
            logger.exception("Unhandled error on %s %s", request.method, request.url.path)
            return JSONResponse(
                status_code=500,
                content=_error_body(ErrorCode.SERVER_ERROR, MESSAGES[ErrorCode.SERVER_ERROR]),
            )
