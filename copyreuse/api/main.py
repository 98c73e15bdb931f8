"""
HTTP API for UI copy suggestions.

The corpus and retriever are built once in the application lifespan, before
the first request is served.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .schemas import ErrorResponse, HealthResponse, SuggestionRequest, SuggestionResponse
from ..core import config
from ..core.errors import CopyReuseError
from ..core.suggestion_service import SuggestionService
from util.logging import logger

# Status code per error category
ERROR_STATUS = {
    "invalid_request": 400,
    "embedding_unavailable": 502,
    "corpus_unavailable": 503,
    "corpus_corrupted": 500,
    "generation_unavailable": 502,
}


def build_service() -> SuggestionService:
    """Wire the configured embedding provider, retriever and rewriter into a pipeline."""
    issues = config.validate_config()
    if issues:
        raise ValueError(f"Invalid configuration: {'; '.join(issues)}")

    return SuggestionService(
        embedding_provider=config.get_embedding_provider(),
        retriever=config.get_retriever(),
        rewriter=config.get_rewriter(),
        top_k=config.REUSE_TOP_K,
        suggestion_count=config.SUGGESTION_COUNT,
    )


def _error_response(error: CopyReuseError) -> JSONResponse:
    status_code = ERROR_STATUS.get(error.error_type, 500)
    if error.error_type == "invalid_request":
        # Plain {"error": message} body for client mistakes
        body = {"error": str(error)}
    else:
        body = ErrorResponse(error=error.error_type, message=str(error)).model_dump(mode="json", exclude_none=True)
    return JSONResponse(status_code=status_code, content=body)


def create_app(service: SuggestionService = None) -> FastAPI:
    """
    Create the API application.

    Args:
        service: prepared pipeline; when omitted one is built from configuration at startup
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.service is None:
            app.state.service = build_service()
            logger.log_operation("api.startup", "success", app.state.service.retriever.describe())
        yield

    app = FastAPI(
        title="Copy Reuse API",
        version=config.VERSION,
        description="UI copy rewrites with reuse suggestions from approved copy",
        docs_url="/docs" if config.debug_enabled() else None,
        redoc_url="/redoc" if config.debug_enabled() else None,
        lifespan=lifespan,
    )
    app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health", response_model=HealthResponse)
    def health_check_endpoint(request: Request):
        """Check service health and corpus state."""
        current = request.app.state.service
        if current is None:
            return HealthResponse(status="unhealthy", version=config.VERSION, corpus_loaded=False)

        info = current.retriever.describe()
        return HealthResponse(
            status="healthy",
            version=config.VERSION,
            corpus_loaded=True,
            corpus_size=info.get("corpus_size"),
            retriever=info.get("retriever"),
        )

    @app.post("/get-suggestions", response_model=SuggestionResponse)
    def get_suggestions(payload: SuggestionRequest, request: Request):
        """Return reuse lines from the approved corpus plus new rewrite options."""
        current = request.app.state.service
        try:
            result = current.suggest(
                node_text=payload.node_text,
                style_guide_text=payload.style_guide_text,
                extra_context=payload.extra_context,
            )
        except CopyReuseError as e:
            logger.log_request_failure("api.get_suggestions", e.error_type, str(e))
            return _error_response(e)
        except Exception as e:
            logger.log_request_failure("api.get_suggestions", "server_error", str(e))
            return JSONResponse(status_code=500, content={"error": "Server error"})

        return SuggestionResponse(
            reuse_suggestions=result.reuse_suggestions,
            new_suggestions=result.new_suggestions,
        )

    return app


app = create_app()
