"""FastAPI app - the GitHub webhook endpoint and a health check."""
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from src.config import load_config
from src.context import AppContext, build_context
from src.logging_config import configure_logging

ROOT = Path(__file__).parent.parent.parent


def create_app(context: AppContext) -> FastAPI:
    """App bound to an already wired context. The scheduler runs for the app's lifetime."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        context.start()
        try:
            yield
        finally:
            context.stop()

    app = FastAPI(title="Issue Folder Hooks", lifespan=lifespan)
    app.state.context = context

    @app.post("/", response_class=PlainTextResponse)
    async def github_webhook(request: Request):
        """GitHub issues webhook. Plain text answers, see WebhookPipeline."""
        raw_body = await request.body()
        result = await context.pipeline.handle(request.headers.get("content-type"), raw_body, request.headers)
        return PlainTextResponse(result.body, status_code=result.status_code)

    @app.get("/health")
    async def health():
        return {
            "status": "ok",
            "coordinator": context.scheduler.coordinator,
            "scheduled_jobs": len(context.scheduler.pending),
        }

    return app


def create_app_from_config() -> FastAPI:
    """uvicorn factory: one context per worker process."""
    settings = load_config(ROOT)
    configure_logging(settings.log_level)
    return create_app(build_context(ROOT))
