import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Load environment variables from .env file
load_dotenv()

from deva.database.config import Base, engine  # noqa: E402
from deva.errors import DevaError  # noqa: E402
from deva.middleware import timing_middleware  # noqa: E402
from deva.routes import (  # noqa: E402
    auth_router,
    conversations_router,
    history_router,
    linear_router,
    process_router,
    users_router,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    # Shutdown: Dispose of the engine
    await engine.dispose()


app = FastAPI(title="Deva", lifespan=lifespan)

app.middleware("http")(timing_middleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
        if origin.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s | %(name)s | %(message)s",
)


@app.exception_handler(DevaError)
async def deva_error_handler(request: Request, exc: DevaError):
    if exc.status_code >= 500:
        logger.error(
            f"{type(exc).__name__}: {exc.message}",
            extra={"path": request.url.path, "cause": repr(exc.cause) if exc.cause else None},
        )
        message = exc.public_message
    else:
        message = exc.message
    return JSONResponse(status_code=exc.status_code, content={"error": message})


app.include_router(auth_router)
app.include_router(process_router)
app.include_router(linear_router)
app.include_router(users_router)
app.include_router(conversations_router)
app.include_router(history_router)
