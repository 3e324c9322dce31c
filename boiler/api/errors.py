# Elastic License 2.0
# Copyright (c) 2025 sliptonic
# SPDX-License-Identifier: Elastic-2.0

"""Exception handlers rendering errors as {"Success": false, "Msg": ...}."""
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from boiler.auth.errors import BoilerError, InternalError
from boiler.logging_config import get_logger

logger = get_logger("boiler.api.errors")


def failure(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"Success": False, "Msg": message})


async def boiler_error_handler(request: Request, exc: BoilerError) -> JSONResponse:
    if isinstance(exc, InternalError):
        logger.error(
            "internal_error",
            path=request.url.path,
            error=type(exc).__name__,
            cause=repr(exc.__cause__) if exc.__cause__ else None,
        )
    return failure(exc.status_code, exc.message)


async def store_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("store_error", path=request.url.path, cause=repr(exc))
    return failure(status.HTTP_500_INTERNAL_SERVER_ERROR, InternalError.default_message)


def register_error_handlers(app: FastAPI) -> None:
    """Register the error handlers with the app."""
    app.add_exception_handler(BoilerError, boiler_error_handler)
    app.add_exception_handler(SQLAlchemyError, store_error_handler)
