from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from voicegate.api.v1.router import api_router
from voicegate.core.exceptions import BusinessError
from voicegate.core.i18n import get_message
from voicegate.core.middleware import LocaleMiddleware, LoggingMiddleware, RequestIDMiddleware
from voicegate.core.response import error
from voicegate.i18n.codes import ErrorCode

ASSESSMENT_PATH_PREFIX = "/api/v1/assessments/"


def create_app() -> FastAPI:
    app = FastAPI(title="Voice Assessment Gateway", version="0.1.0")
    app.include_router(api_router)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(LocaleMiddleware)
    app.add_middleware(LoggingMiddleware)

    @app.exception_handler(BusinessError)
    async def business_error_handler(request: Request, exc: BusinessError) -> JSONResponse:
        locale = getattr(request.state, "locale", "zh")
        message = get_message(exc.code, locale, **exc.kwargs)
        return error(exc.http_status, message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        locale = getattr(request.state, "locale", "zh")
        fields = [".".join(str(part) for part in item.get("loc", ()) if part != "body") for item in exc.errors()]
        message = get_message(ErrorCode.INVALID_PARAMETER, locale, detail=", ".join(filter(None, fields)))
        # 评测接口的所有失败响应都需要声明未扣费
        extra = {"billed": False} if request.url.path.startswith(ASSESSMENT_PATH_PREFIX) else {}
        return error(ErrorCode.INVALID_PARAMETER.http_status, message, **extra)

    return app


app = create_app()
