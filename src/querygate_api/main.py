from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from querygate import QueryGate
from querygate.common.errors import QueryGateError
from querygate.common.logger import get_logger

from .container import Container
from .routes import database, health, query

logger = get_logger("querygate_api")


async def handle_querygate_error(request: Request, exc: QueryGateError) -> JSONResponse:
    log = logger.error if exc.http_status >= 500 else logger.info
    log(f"{request.method} {request.url.path} -> {exc.http_status} {exc.error_code.value}: {exc.message}")
    return JSONResponse(
        status_code=exc.http_status,
        content=exc.to_response().model_dump(mode="json"),
    )


def create_app(gate: Optional[QueryGate] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        container = Container(gate)

        app.state.container = container
        yield
        container.close()

    app = FastAPI(
        title="querygate API",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.include_router(query.router, prefix="/api/v1")
    app.include_router(database.router, prefix="/api/v1")
    app.include_router(health.router, prefix="/api/v1")

    app.add_exception_handler(QueryGateError, handle_querygate_error)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # tighten for prod
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    from querygate.common.settings import settings
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
