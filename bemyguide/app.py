from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .auth.config import DEFAULT_TOKEN_CONFIG, TokenConfig
from .auth.dependencies import require_device
from .auth.tokens import issue_token
from .errors import BemyguideError, RateLimitError, StoreError, UpstreamError, ValidationError
from .llm.config import DEFAULT_LLM_CONFIG, LLMConfig
from .ratelimit.config import DEFAULT_RATE_LIMIT_CONFIG, RateLimitConfig
from .ratelimit.limiter import RateDecision, RateLimiter
from .ratelimit.store import KeyValueStore, MemoryStore, RedisStore
from .recommendations.models import AnonymousAuthResponse, RecommendationResponse
from .recommendations.service import recommend
from .recommendations.validation import validate_location_query

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)

GENERIC_FAILURE = "Failed to process your request. Please try again."

router = APIRouter()


def build_store(config: RateLimitConfig) -> KeyValueStore:
    if config.redis_url:
        return RedisStore(config.redis_url)
    logger.warning("REDIS_URL not set, rate limits are tracked per process")
    return MemoryStore()


async def _read_json(request: Request, message: str):
    try:
        return await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ValidationError(message) from exc


async def _admit(request: Request, device_id: str) -> RateDecision | None:
    """Run the rate limiter; a store failure lets the request through."""
    limiter: RateLimiter = request.app.state.rate_limiter
    try:
        return await limiter.admit(device_id)
    except StoreError:
        logger.warning("Rate limit store unavailable, admitting %s", device_id, exc_info=True)
        return None


# ── Public endpoints ─────────────────────────────────────────────────────


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.post("/auth/anonymous", response_model=AnonymousAuthResponse)
async def anonymous_auth(request: Request) -> AnonymousAuthResponse:
    body = await _read_json(request, "Invalid request")
    device_id = body.get("deviceId") if isinstance(body, dict) else None
    issued = issue_token(device_id, request.app.state.token_config)
    logger.info("Issued anonymous token for device %s", issued.subject)
    return AnonymousAuthResponse(token=issued.token)


# ── Protected endpoints ──────────────────────────────────────────────────


@router.post("/recommendations", response_model=RecommendationResponse)
async def recommendations(request: Request) -> JSONResponse:
    # Order matters: each stage gates the next.
    body = await _read_json(request, "Invalid request body")
    query = validate_location_query(body)
    device_id = require_device(request)

    decision = await _admit(request, device_id)
    headers = decision.headers() if decision else {}
    if decision and not decision.allowed:
        raise RateLimitError(decision.retry_after, headers)

    places = await recommend(query, request.app.state.llm_config)
    response = RecommendationResponse(data=places)
    return JSONResponse(content=response.model_dump(mode="json"), headers=headers)


# ── Error mapping ────────────────────────────────────────────────────────


def _error_body(message: str) -> dict:
    return {"success": False, "error": message}


async def _handle_pipeline_error(request: Request, exc: BemyguideError) -> JSONResponse:
    if isinstance(exc, UpstreamError):
        logger.error("Upstream failure on %s %s: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=_error_body(GENERIC_FAILURE))
    headers = exc.headers if isinstance(exc, RateLimitError) else None
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc.message), headers=headers)


async def _handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=_error_body(GENERIC_FAILURE))


# ── App factory ──────────────────────────────────────────────────────────


def create_app(
    token_config: TokenConfig = DEFAULT_TOKEN_CONFIG,
    llm_config: LLMConfig = DEFAULT_LLM_CONFIG,
    rate_limiter: RateLimiter | None = None,
) -> FastAPI:
    if rate_limiter is None:
        rate_limiter = RateLimiter(build_store(DEFAULT_RATE_LIMIT_CONFIG), DEFAULT_RATE_LIMIT_CONFIG)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await app.state.rate_limiter.store.close()

    app = FastAPI(title="bemyguide API", version="1.0.0", lifespan=lifespan)
    app.state.token_config = token_config
    app.state.llm_config = llm_config
    app.state.rate_limiter = rate_limiter

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    app.add_exception_handler(BemyguideError, _handle_pipeline_error)
    app.add_exception_handler(Exception, _handle_unexpected)
    app.include_router(router)
    return app


app = create_app()
