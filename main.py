import inspect
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, JSONResponse, Response
from fastapi.staticfiles import StaticFiles
from openai import AsyncOpenAI
from starlette.exceptions import HTTPException as StarletteHTTPException

from routes.observation_route import router as observation_router
from services.image_store import URL_PREFIX, UploadStore
from utils.app_config import AppConfig
from utils.database_init import AsyncDatabaseInitializer

BASE_DIR = Path(__file__).resolve().parent
PUBLIC_DIR = BASE_DIR / "public"

from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file if present


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan manager to initialize:
      - the SQLite observations table (kept across restarts) and the upload directory
      - the inference client, when a GROQ_API_KEY is configured
    and attach them to `app.state`.
    """
    await app.state.db_initializer.ensure_database()
    app.state.upload_store.ensure_dir()

    config: AppConfig = app.state.config
    owns_client = False
    if app.state.openai_client is None and config.groq_api_key:
        try:
            app.state.openai_client = AsyncOpenAI(
                api_key=config.groq_api_key,
                base_url=config.groq_base_url,
                max_retries=0,
            )
        except Exception as exc:
            raise RuntimeError("Failed to initialize inference client") from exc
        owns_client = True
    elif not config.groq_api_key:
        logging.warning("GROQ_API_KEY is not set; /api/analyze will reject uploads until it is configured")

    try:
        yield
    finally:
        # Gracefully close the client if we created it and it exposes a close/aclose method.
        client = app.state.openai_client if owns_client else None
        if client is not None:
            aclose = getattr(client, "aclose", None) or getattr(client, "close", None)
            if aclose is not None:
                try:
                    if inspect.iscoroutinefunction(aclose):
                        await aclose()
                    else:
                        result = aclose()
                        if inspect.isawaitable(result):
                            await result
                except Exception:
                    logging.warning("Error while closing inference client", exc_info=True)


def create_app(config: Optional[AppConfig] = None, openai_client=None) -> FastAPI:
    """
    Create and configure the FastAPI application instance.

    Args:
        config: Settings to use; read from the environment when omitted.
        openai_client: Optional preconfigured async client for the inference API.
    """
    config = config or AppConfig.from_env()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(lifespan=lifespan)
    app.state.config = config
    app.state.db_initializer = AsyncDatabaseInitializer(config.database_dir)
    app.state.upload_store = UploadStore(config.upload_dir)
    app.state.openai_client = openai_client

    @app.middleware("http")
    async def cors(request: Request, call_next):
        """Reflect the caller's origin and answer every pre-flight with an empty 200."""
        if request.method == "OPTIONS":
            response = Response(status_code=200)
        else:
            response = await call_next(request)
        response.headers["Access-Control-Allow-Origin"] = request.headers.get("origin") or "*"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type,Authorization"
        response.headers["Access-Control-Allow-Methods"] = "GET,POST,OPTIONS"
        return response

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        messages = [err.get("msg", "invalid request") for err in exc.errors()]
        return JSONResponse(status_code=400, content={"error": "; ".join(messages) or "Invalid request"})

    app.mount(URL_PREFIX, StaticFiles(directory=app.state.upload_store.upload_dir, check_dir=False), name="uploads")

    # Serve static assets from the public directory, if it exists.
    if PUBLIC_DIR.exists():
        app.mount("/public", StaticFiles(directory=PUBLIC_DIR), name="public")

    @app.get("/", include_in_schema=False)
    async def serve_index():
        """
        Serve the frontend index page from the public directory.
        """
        index_path = PUBLIC_DIR / "index.html"
        if not index_path.exists():
            raise HTTPException(status_code=404, detail="Frontend not found")
        return FileResponse(index_path)

    @app.get("/health")
    async def health(request: Request):
        """
        Simple health check that reports store and inference client presence.
        """
        has_db = hasattr(request.app.state, "db_initializer")
        has_inference = getattr(request.app.state, "openai_client", None) is not None
        return {"ok": True, "db_initialized": has_db, "inference_available": has_inference}

    # Register application routers
    app.include_router(observation_router)

    return app


app = create_app()


def run() -> None:
    """Serve the application with uvicorn on the configured host and port."""
    import uvicorn

    config: AppConfig = app.state.config
    uvicorn.run(app, host=config.host, port=config.port, log_level=config.log_level.lower())


if __name__ == "__main__":
    run()
