"""
Supplymatch: FastAPI Application Layer

Endpoints:
  1. POST /match                     Rank supplier products for a requirement
  2. POST /recommendations           Personalized product recommendations
  3. POST /recommendations/click     Record a click on a recommendation
  4. GET  /health                    Health check

Single request / single response; callers send already-fetched records.
"""
from __future__ import annotations
import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from .config import Settings, get_settings
from .logging_setup import configure_logging
from .matching import MatchingEngine
from .models import (
    ActivitySnapshot, Algorithm, MatchResult,
    Product, RecommendationResult, Requirement,
)
from .recommendations import RecommendationEngine
from .tracking import InMemoryRecommendationStore, RecommendationTracker

logger = logging.getLogger(__name__)


# ============================================================
# Application State (shared singletons)
# ============================================================

class AppState:
    """Holds all shared service instances."""
    settings: Settings
    matcher: MatchingEngine
    recommender: RecommendationEngine
    tracker: RecommendationTracker
    start_time: float
    request_count: int = 0

    def __init__(self):
        self.start_time = time.monotonic()
        self.request_count = 0


_state = AppState()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build engines from settings on startup."""
    settings = get_settings()
    configure_logging(settings)
    logger.info("Starting Supplymatch scoring service...")

    _state.settings = settings
    _state.matcher = MatchingEngine(
        weights=settings.matching_weights,
        policy=settings.commercial_policy,
    )
    _state.recommender = RecommendationEngine(
        weights=settings.hybrid_weights,
        windows=settings.activity_windows,
    )
    # In production: a database-backed RecommendationStore
    _state.tracker = RecommendationTracker(
        InMemoryRecommendationStore(),
        attribution_hours=settings.click_attribution_hours,
    )
    _state.start_time = time.monotonic()

    logger.info("Service ready. Version: %s", settings.app_version)
    yield
    logger.info("Shutting down Supplymatch scoring service...")


# ============================================================
# Request/Response Models (API-specific)
# ============================================================

class MatchRequest(BaseModel):
    requirement: Requirement
    candidates: list[Product] = Field(default_factory=list)
    max_results: Optional[int] = Field(default=None, ge=0)


class MatchResponse(BaseModel):
    matches: list[MatchResult]
    candidates_received: int
    response_time_ms: int = 0


class RecommendationRequest(BaseModel):
    user_id: str
    org_id: str
    limit: Optional[int] = Field(default=None, ge=0)
    exclude_ids: list[str] = Field(default_factory=list)
    algorithm: Algorithm = Algorithm.HYBRID
    snapshot: ActivitySnapshot = Field(default_factory=ActivitySnapshot)
    now: Optional[datetime] = None


class ProductSummary(BaseModel):
    id: str
    title: str
    category: str
    price_min_inr: float
    price_max_inr: float
    lead_time_weeks: float
    supplier_name: Optional[str] = None


class ProductRecommendation(BaseModel):
    product: ProductSummary
    score: float
    reason: str
    algorithm: Algorithm
    metadata: Optional[dict[str, Any]] = None


class RecommendationResponse(BaseModel):
    algorithm: Algorithm
    recommendations: list[ProductRecommendation]
    log_id: Optional[str] = None


class ClickRequest(BaseModel):
    user_id: str
    org_id: str
    product_id: str


class ClickResponse(BaseModel):
    tracked: bool


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: int
    request_count: int


# ============================================================
# FastAPI App
# ============================================================

app = FastAPI(
    title="Supplymatch Scoring API",
    description="Supplier matching and buyer recommendations for an "
                "industrial automation marketplace.",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def timing_middleware(request: Request, call_next):
    start = time.monotonic()
    _state.request_count += 1
    response = await call_next(request)
    elapsed = int((time.monotonic() - start) * 1000)
    response.headers["X-Response-Time-Ms"] = str(elapsed)
    return response


# ============================================================
# 1. POST /match: Supplier Matching
# ============================================================

@app.post("/match", response_model=MatchResponse, tags=["Matching"])
async def match_products(request: MatchRequest):
    """Score candidates against the requirement and return the top matches."""
    start = time.monotonic()
    max_results = (request.max_results if request.max_results is not None
                   else _state.settings.default_max_results)
    try:
        matches = _state.matcher.match_products(
            request.requirement, request.candidates, max_results)
    except Exception as e:
        logger.exception("Matching failed")
        raise HTTPException(500, f"Matching error: {str(e)}")

    elapsed = int((time.monotonic() - start) * 1000)
    logger.info(
        "[match] use_case=%r candidates=%d results=%d time=%dms",
        request.requirement.use_case, len(request.candidates), len(matches), elapsed)
    return MatchResponse(
        matches=matches,
        candidates_received=len(request.candidates),
        response_time_ms=elapsed,
    )


# ============================================================
# 2. POST /recommendations: Buyer Recommendations
# ============================================================

@app.post("/recommendations", response_model=RecommendationResponse,
          tags=["Recommendations"])
async def recommend_products(request: RecommendationRequest):
    """Rank products for a buyer; the served batch is logged best-effort."""
    limit = (request.limit if request.limit is not None
             else _state.settings.default_recommendation_limit)
    try:
        results = _state.recommender.recommendations_for_user(
            request.user_id,
            request.org_id,
            request.snapshot,
            limit=limit,
            exclude_ids=request.exclude_ids,
            algorithm=request.algorithm,
            now=request.now,
        )
    except Exception as e:
        logger.exception("Recommendation failed")
        raise HTTPException(500, f"Recommendation error: {str(e)}")

    recommendations = _attach_products(results, request.snapshot)
    log = await _state.tracker.log_recommendations(
        request.user_id, request.org_id, request.algorithm, results)

    logger.info(
        "[recommend] user=%s org=%s algorithm=%s results=%d",
        request.user_id, request.org_id, request.algorithm.value, len(recommendations))
    return RecommendationResponse(
        algorithm=request.algorithm,
        recommendations=recommendations,
        log_id=log.id if log else None,
    )


# ============================================================
# 3. POST /recommendations/click: Click Tracking
# ============================================================

@app.post("/recommendations/click", response_model=ClickResponse,
          tags=["Recommendations"])
async def track_click(request: ClickRequest):
    """Never fails the caller; `tracked` reports whether the store accepted it."""
    tracked = await _state.tracker.track_click(
        request.user_id, request.org_id, request.product_id)
    return ClickResponse(tracked=tracked)


# ============================================================
# 4. GET /health: Health Check
# ============================================================

@app.get("/health", response_model=HealthResponse, tags=["System"])
async def health_check():
    return HealthResponse(
        status="healthy",
        version=_state.settings.app_version,
        uptime_seconds=int(time.monotonic() - _state.start_time),
        request_count=_state.request_count,
    )


# ============================================================
# Helpers
# ============================================================

def _attach_products(
    results: list[RecommendationResult], snapshot: ActivitySnapshot,
) -> list[ProductRecommendation]:
    """Join scored ids back to product details for display."""
    products = snapshot.product_index()
    orgs = snapshot.org_index()
    out = []
    for r in results:
        p = products.get(r.product_id)
        if p is None:
            continue
        if p.org is not None:
            supplier = p.org.name
        else:
            org = orgs.get(p.org_id)
            supplier = org.name if org else None
        out.append(ProductRecommendation(
            product=ProductSummary(
                id=p.id,
                title=p.title,
                category=p.category,
                price_min_inr=p.price_min_inr,
                price_max_inr=p.price_max_inr,
                lead_time_weeks=p.lead_time_weeks,
                supplier_name=supplier,
            ),
            score=r.score,
            reason=r.reason,
            algorithm=r.algorithm,
            metadata=r.metadata,
        ))
    return out


# ============================================================
# Entry Point
# ============================================================

if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port, log_level="info")
