import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from brandbite.core.config import settings
from brandbite.core.errors import BrandbiteError
from brandbite.core.log_config import configure_logging
from brandbite.schemas.common import ErrorResponse
import brandbite.models  # noqa: F401  # force model registration

from brandbite.api.v1.auth import router as auth_router
from brandbite.api.v1.customer import router as customer_router
from brandbite.api.v1.creative import router as creative_router
from brandbite.api.v1.admin_catalog import router as admin_catalog_router
from brandbite.api.v1.admin_finance import router as admin_finance_router
from brandbite.api.v1.admin_board import router as admin_board_router
from brandbite.api.v1.admin_accounts import router as admin_accounts_router

logger = logging.getLogger(__name__)

# Business-rule failures, documented in OpenAPI
ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
}


def create_application() -> FastAPI:
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(title="Brandbite API")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    def root():
        return {"status": "ok", "service": "brandbite"}

    # Routers
    app.include_router(auth_router, prefix="/api")
    app.include_router(customer_router, prefix="/api", responses=ERROR_RESPONSES)
    app.include_router(creative_router, prefix="/api", responses=ERROR_RESPONSES)
    app.include_router(admin_catalog_router, prefix="/api", responses=ERROR_RESPONSES)
    app.include_router(admin_finance_router, prefix="/api", responses=ERROR_RESPONSES)
    app.include_router(admin_board_router, prefix="/api", responses=ERROR_RESPONSES)
    app.include_router(admin_accounts_router, prefix="/api", responses=ERROR_RESPONSES)

    @app.exception_handler(BrandbiteError)
    async def brandbite_error_handler(request: Request, exc: BrandbiteError) -> JSONResponse:
        logger.warning("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_detail()})

    @app.exception_handler(SQLAlchemyError)
    async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.error("Database error on %s: %s", request.url.path, exc, exc_info=True)
        return JSONResponse(status_code=500, content={"detail": "Internal database error"})

    return app


app = create_application()
