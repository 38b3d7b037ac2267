"""
Supplymatch: Recommendation logging and click tracking

Best-effort side actions around the recommendation engine. A failing store
is logged and swallowed; it never changes what the caller gets back.
"""
from __future__ import annotations
import logging
from datetime import datetime, timedelta
from typing import Optional
from uuid import uuid4

from .models import (
    Algorithm, InteractionType, RecommendationLog,
    RecommendationResult, RecommendationType, UserInteraction,
)
from .utils import as_utc, utc_now

logger = logging.getLogger(__name__)


RECOMMENDATION_TYPES: dict[Algorithm, RecommendationType] = {
    Algorithm.HYBRID: RecommendationType.BROWSING_HISTORY,
    Algorithm.BROWSING: RecommendationType.BROWSING_HISTORY,
    Algorithm.INDUSTRY: RecommendationType.INDUSTRY_SIMILAR,
    Algorithm.TRENDING: RecommendationType.TRENDING_REGION,
    Algorithm.SIMILAR_BUYERS: RecommendationType.SIMILAR_BUYERS,
}


# ============================================================
# Store Abstraction (Repository Pattern)
# ============================================================

class RecommendationStore:
    """
    Persistence for recommendation logs and user interactions.
    In production, backed by the application database.
    """

    async def create_log(self, log: RecommendationLog) -> RecommendationLog:
        raise NotImplementedError

    async def find_recent_log(
        self, user_id: str, org_id: str, product_id: str, since: datetime,
    ) -> Optional[RecommendationLog]:
        raise NotImplementedError

    async def mark_clicked(self, log_id: str, product_id: str, clicked_at: datetime) -> None:
        raise NotImplementedError

    async def create_interaction(self, interaction: UserInteraction) -> UserInteraction:
        raise NotImplementedError


class InMemoryRecommendationStore(RecommendationStore):
    """In-memory implementation for testing without a database."""

    def __init__(self):
        self.logs: dict[str, RecommendationLog] = {}
        self.interactions: list[UserInteraction] = []

    async def create_log(self, log: RecommendationLog) -> RecommendationLog:
        self.logs[log.id] = log
        return log

    async def find_recent_log(
        self, user_id: str, org_id: str, product_id: str, since: datetime,
    ) -> Optional[RecommendationLog]:
        since = as_utc(since)
        matches = [
            log for log in self.logs.values()
            if log.user_id == user_id and log.org_id == org_id
            and product_id in log.product_ids and as_utc(log.created_at) >= since
        ]
        if not matches:
            return None
        return max(matches, key=lambda log: as_utc(log.created_at))

    async def mark_clicked(self, log_id: str, product_id: str, clicked_at: datetime) -> None:
        log = self.logs.get(log_id)
        if log:
            log.clicked_product_id = product_id
            log.clicked_at = clicked_at

    async def create_interaction(self, interaction: UserInteraction) -> UserInteraction:
        self.interactions.append(interaction)
        return interaction


# ============================================================
# Tracker
# ============================================================

class RecommendationTracker:
    """Feedback-loop analytics for served recommendations."""

    def __init__(self, store: RecommendationStore, attribution_hours: int = 24):
        self.store = store
        self.attribution_window = timedelta(hours=attribution_hours)

    async def log_recommendations(
        self,
        user_id: str,
        org_id: str,
        algorithm: Algorithm,
        results: list[RecommendationResult],
        now: Optional[datetime] = None,
    ) -> Optional[RecommendationLog]:
        """Persist one log row per served batch. Returns None on failure."""
        scores = [r.score for r in results]
        log = RecommendationLog(
            id=str(uuid4()),
            user_id=user_id,
            org_id=org_id,
            recommendation_type=RECOMMENDATION_TYPES[algorithm],
            product_ids=[r.product_id for r in results],
            algorithm=algorithm,
            score=scores[0] if scores else 0.0,
            metadata={
                'total_recommendations': len(results),
                'average_score': sum(scores) / len(scores) if scores else 0.0,
            },
            created_at=utc_now(now),
        )
        try:
            return await self.store.create_log(log)
        except Exception:
            logger.warning(
                "Failed to log recommendations for user=%s org=%s",
                user_id, org_id, exc_info=True)
            return None

    async def track_click(
        self,
        user_id: str,
        org_id: str,
        product_id: str,
        now: Optional[datetime] = None,
    ) -> bool:
        """
        Attribute a click to the most recent log that served the product and
        record it as a VIEW_PRODUCT interaction. Returns False if the store
        failed at any step.
        """
        now = utc_now(now)
        try:
            recent = await self.store.find_recent_log(
                user_id, org_id, product_id, since=now - self.attribution_window)
            if recent:
                await self.store.mark_clicked(recent.id, product_id, now)

            await self.store.create_interaction(UserInteraction(
                user_id=user_id,
                org_id=org_id,
                product_id=product_id,
                interaction_type=InteractionType.VIEW_PRODUCT,
                created_at=now,
                metadata={'source': 'recommendation', 'timestamp': now.isoformat()},
            ))
        except Exception:
            logger.warning(
                "Failed to track recommendation click user=%s product=%s",
                user_id, product_id, exc_info=True)
            return False
        return True
