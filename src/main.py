from __future__ import annotations

import uvicorn
from fastapi import FastAPI
from loguru import logger

from src.application.dtos.common_dto import HealthResponse, RootResponse
from src.infrastructure.api.error_handlers import add_exception_handlers
from src.infrastructure.api.middlewares import add_default_middlewares
from src.infrastructure.api.routes.processing_routes import router as processing_router
from src.infrastructure.config import get_config
from src.infrastructure.log_config import configure_logging


def create_app() -> FastAPI:
    config = get_config()
    configure_logging(config.log_level, serialize=config.log_json)

    app = FastAPI(
        title="Image Processing API",
        version="0.1.0",
        description="""
        ## Image Processing API

        Transform images on the fly with an ordered list of operations: resize,
        crop, rotate, color adjustments, filters and format conversion.

        ### Pipelines
        Every pipeline starts with an `input` operation (an image URL, a storage
        object or a blank canvas) and ends with an `output` operation (the
        encoding of the result). Operations in between run in the given order.

        ### Error Responses
        - **400 Bad Request**: Unknown operation, missing or invalid option, invalid
          operation order, or undecodable operations
        - **404 Not Found**: No such route
        - **500 Internal Server Error**: The image could not be processed
        """,
        license_info={
            "name": "Apache 2.0",
            "url": "https://www.apache.org/licenses/LICENSE-2.0",
        },
    )
    add_default_middlewares(app, config)
    add_exception_handlers(app)

    @app.get(
        "/",
        response_model=RootResponse,
        summary="API Root",
        description="Get basic information about the Image Processing API",
        response_description="API information including status and version",
    )
    def root():
        """Get API root information."""
        return {"status": "ok", "service": "image-processing-api", "version": app.version}

    @app.get(
        "/health",
        response_model=HealthResponse,
        summary="Health Check",
        description="Check if the API service is running and healthy",
        response_description="Health status of the API service",
    )
    def health():
        """Check API health status."""
        return {"status": "healthy"}

    app.include_router(processing_router)
    return app


app = create_app()


if __name__ == "__main__":
    config = get_config()
    logger.info(f"Local dev server listening on http://{config.api_host}:{config.api_port}")
    uvicorn.run(app, host=config.api_host, port=config.api_port)
