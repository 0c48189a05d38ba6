import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse

from oreocat.core.errors import register_exception_handlers
from oreocat.core.settings import log_configuration_warnings, settings
from oreocat.pages.home import render_home_page
from oreocat.routers import auth, files, upload
from oreocat.services.storage import close_client

logging.getLogger("oreocat").setLevel(settings.LOG_LEVEL.upper())


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    log_configuration_warnings(settings)
    yield
    await close_client()


app = FastAPI(
    title="Oreocat Upload API",
    description="File uploads to object storage with signed URLs",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(auth.router)
app.include_router(upload.router)
app.include_router(files.router)


@app.get("/", response_class=HTMLResponse)
def home() -> HTMLResponse:
    return HTMLResponse(
        content=render_home_page(
            bucket=settings.SUPABASE_STORAGE_BUCKET,
            auth_required=settings.AUTH_REQUIRED,
            sign_in_url=settings.AUTH_SIGN_IN_URL,
            sign_out_url=settings.AUTH_SIGN_OUT_URL,
        )
    )


@app.get("/health")
def health_check() -> dict:
    return {"status": "ok"}
