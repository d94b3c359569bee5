import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

from duet.database import init_db, close_db
from duet.core.config import settings
from duet.core.errors import DuetError
from duet.core.logging import setup_logging
from duet.core.security import SecurityService, TokenService
from duet.api.v1.api import api_router
from duet.api.graphql.router import GRAPHQL_PATH, graphiql_page, graphql_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    setup_logging(settings.LOG_LEVEL)
    # Refuse to start without a signing secret
    TokenService.from_settings(settings)
    # Build the unknown-user hash now so no login pays for it
    SecurityService.dummy_hash()
    await init_db()
    logger.info(f"{settings.APP_NAME} {settings.VERSION} started")
    yield
    # Shutdown
    await close_db()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    lifespan=lifespan,
    debug=settings.DEBUG
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DuetError)
async def duet_error_handler(request: Request, exc: DuetError):
    """Errors not converted by an endpoint, mostly StoreError"""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc!r}", exc_info=exc)
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message}, headers=headers)


# REST bootstrap endpoints under /rest, GraphQL behind the request gate
app.include_router(api_router, prefix="/rest")
app.include_router(graphql_router, prefix=GRAPHQL_PATH)


# Health check
@app.get("/health")
async def health_check():
    return {"status": "healthy", "version": settings.VERSION}


@app.get("/", include_in_schema=False)
async def graphiql():
    return graphiql_page()


# Lambda handler for AWS deployment
from mangum import Mangum  # noqa: E402
lambda_handler = Mangum(app, lifespan="on")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.API_HOST, port=settings.API_PORT)
