import logging
import uuid

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from cipher_service.api.routes import router
from cipher_service.errors import ServiceError
from cipher_service.services.cipher import CipherCore
from cipher_service.settings import Settings, get_settings

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    # Key material must exist before any route is reachable; config errors abort here.
    cipher_core = CipherCore.from_settings(settings)

    docs_enabled = not settings.is_production
    app = FastAPI(
        title="Cipher Service",
        description="Encrypts and decrypts text with a statically derived key",
        version="0.1.0",
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        openapi_url="/openapi.json" if docs_enabled else None,
    )
    app.state.cipher_core = cipher_core

    @app.exception_handler(ServiceError)
    async def handle_service_error(_request: Request, exc: ServiceError) -> JSONResponse:
        logger.warning(
            "cipher.handled_error | %s",
            {
                "error_id": exc.error_id,
                "code": exc.code,
                "status_code": exc.status_code,
            },
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": {"code": exc.code, "message": exc.message, "error_id": exc.error_id}},
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(_request: Request, exc: Exception) -> JSONResponse:
        error_id = str(uuid.uuid4())
        logger.exception("cipher.unhandled_error | %s", {"error_id": error_id})
        return JSONResponse(
            status_code=500,
            content={
                "error": {
                    "code": "internal_error",
                    "message": "Unexpected internal error",
                    "error_id": error_id,
                }
            },
        )

    app.include_router(router)
    logger.info(
        "cipher.startup | %s",
        {"environment": settings.environment, "encryption_method": cipher_core.method.name},
    )
    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(app, host=settings.api_host, port=settings.api_port, log_level=settings.log_level.lower())
