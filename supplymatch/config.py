"""
config.py: Environment-based configuration using Pydantic Settings.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .matching import CommercialPolicy, MatchingWeights
from .recommendations import ActivityWindows, HybridWeights


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # ── Matching weights (should sum to 1.0) ─────────────────────────────
    match_weight_spec: float = 0.40
    match_weight_integration: float = 0.20
    match_weight_lead_time: float = 0.10
    match_weight_service: float = 0.15
    match_weight_warranty: float = 0.10
    match_weight_cost: float = 0.05
    default_max_results: int = 3

    # ── Commercial terms (placeholder business constants) ────────────────
    lease_monthly_rate: float = 0.08
    lease_term_months: int = 36
    pilot_cost_rate: float = 0.15
    pilot_duration_weeks: int = 8

    # ── Recommendation windows ───────────────────────────────────────────
    browsing_window_days: int = 30
    browsing_max_views: int = 20
    industry_window_days: int = 60
    industry_peer_sample: int = 100
    trending_window_days: int = 7
    similar_buyer_window_days: int = 90
    click_attribution_hours: int = 24
    default_recommendation_limit: int = 10

    # ── Hybrid blend ─────────────────────────────────────────────────────
    hybrid_weight_browsing: float = 0.40
    hybrid_weight_industry: float = 0.25
    hybrid_weight_trending: float = 0.20
    hybrid_weight_similar_buyers: float = 0.15

    # ── Logging ──────────────────────────────────────────────────────────
    log_level: str = "INFO"
    log_format: str = "json"  # json | text
    log_file: Optional[str] = None

    # ── Server ───────────────────────────────────────────────────────────
    app_version: str = "1.0.0"
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: str = "http://localhost:3000"

    # ── Computed Properties ──────────────────────────────────────────────

    @property
    def matching_weights(self) -> MatchingWeights:
        return MatchingWeights(
            spec=self.match_weight_spec,
            integration=self.match_weight_integration,
            lead_time=self.match_weight_lead_time,
            service=self.match_weight_service,
            warranty=self.match_weight_warranty,
            cost=self.match_weight_cost,
        )

    @property
    def commercial_policy(self) -> CommercialPolicy:
        return CommercialPolicy(
            lease_monthly_rate=self.lease_monthly_rate,
            lease_term_months=self.lease_term_months,
            pilot_cost_rate=self.pilot_cost_rate,
            pilot_duration_weeks=self.pilot_duration_weeks,
        )

    @property
    def activity_windows(self) -> ActivityWindows:
        return ActivityWindows(
            browsing_days=self.browsing_window_days,
            browsing_max_views=self.browsing_max_views,
            industry_days=self.industry_window_days,
            industry_peer_sample=self.industry_peer_sample,
            trending_days=self.trending_window_days,
            similar_buyer_days=self.similar_buyer_window_days,
        )

    @property
    def hybrid_weights(self) -> HybridWeights:
        return HybridWeights(
            browsing=self.hybrid_weight_browsing,
            industry=self.hybrid_weight_industry,
            trending=self.hybrid_weight_trending,
            similar_buyers=self.hybrid_weight_similar_buyers,
        )

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"log_level must be one of {valid}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        valid = {"json", "text"}
        if v.lower() not in valid:
            raise ValueError(f"log_format must be one of {valid}")
        return v.lower()


@lru_cache
def get_settings() -> Settings:
    return Settings()
