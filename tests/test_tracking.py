"""
Tests for recommendation logging and click attribution.
"""

import asyncio
import logging
from datetime import timedelta

import pytest

from conftest import NOW
from supplymatch.models import (
    Algorithm, InteractionType, RecommendationResult, RecommendationType,
)
from supplymatch.tracking import (
    InMemoryRecommendationStore, RecommendationStore, RecommendationTracker,
)


class FailingStore(RecommendationStore):
    """Every call blows up, like a database that went away."""

    async def create_log(self, log):
        raise ConnectionError("database unavailable")

    async def find_recent_log(self, user_id, org_id, product_id, since):
        raise ConnectionError("database unavailable")

    async def mark_clicked(self, log_id, product_id, clicked_at):
        raise ConnectionError("database unavailable")

    async def create_interaction(self, interaction):
        raise ConnectionError("database unavailable")


@pytest.fixture
def store():
    return InMemoryRecommendationStore()


@pytest.fixture
def tracker(store):
    return RecommendationTracker(store)


def _results(*pairs):
    return [
        RecommendationResult(
            product_id=pid, score=score, reason='r', algorithm=Algorithm.TRENDING)
        for pid, score in pairs
    ]


@pytest.mark.unit
class TestLogRecommendations:

    def test_persists_one_log_per_batch(self, tracker, store):
        log = asyncio.run(tracker.log_recommendations(
            'u-1', 'buyer-1', Algorithm.TRENDING,
            _results(('p1', 0.8), ('p2', 0.4)), now=NOW))

        assert log is not None
        assert store.logs[log.id] is log
        assert log.product_ids == ['p1', 'p2']
        assert log.score == 0.8
        assert log.recommendation_type == RecommendationType.TRENDING_REGION
        assert log.metadata['total_recommendations'] == 2
        assert log.metadata['average_score'] == pytest.approx(0.6)
        assert log.created_at == NOW

    @pytest.mark.parametrize('algorithm,expected', [
        (Algorithm.HYBRID, RecommendationType.BROWSING_HISTORY),
        (Algorithm.BROWSING, RecommendationType.BROWSING_HISTORY),
        (Algorithm.INDUSTRY, RecommendationType.INDUSTRY_SIMILAR),
        (Algorithm.SIMILAR_BUYERS, RecommendationType.SIMILAR_BUYERS),
    ])
    def test_recommendation_type_mapping(self, tracker, algorithm, expected):
        log = asyncio.run(tracker.log_recommendations('u-1', 'buyer-1', algorithm, [], now=NOW))
        assert log.recommendation_type == expected

    def test_empty_batch(self, tracker):
        log = asyncio.run(tracker.log_recommendations(
            'u-1', 'buyer-1', Algorithm.HYBRID, [], now=NOW))
        assert log.product_ids == []
        assert log.score == 0.0
        assert log.metadata['average_score'] == 0.0

    def test_store_failure_is_swallowed(self, caplog):
        tracker = RecommendationTracker(FailingStore())
        with caplog.at_level(logging.WARNING, logger='supplymatch.tracking'):
            log = asyncio.run(tracker.log_recommendations(
                'u-1', 'buyer-1', Algorithm.HYBRID, _results(('p1', 0.5)), now=NOW))
        assert log is None
        assert 'Failed to log recommendations' in caplog.text


@pytest.mark.unit
class TestTrackClick:

    def _serve(self, tracker, product_ids, at):
        return asyncio.run(tracker.log_recommendations(
            'u-1', 'buyer-1', Algorithm.HYBRID,
            _results(*[(pid, 0.5) for pid in product_ids]), now=at))

    def test_marks_most_recent_log(self, tracker, store):
        older = self._serve(tracker, ['p1', 'p2'], NOW - timedelta(hours=5))
        newer = self._serve(tracker, ['p1'], NOW - timedelta(hours=1))

        assert asyncio.run(tracker.track_click('u-1', 'buyer-1', 'p1', now=NOW)) is True
        assert newer.clicked_product_id == 'p1'
        assert newer.clicked_at == NOW
        assert older.clicked_product_id is None

    def test_records_view_interaction(self, tracker, store):
        asyncio.run(tracker.track_click('u-1', 'buyer-1', 'p1', now=NOW))
        [recorded] = store.interactions
        assert recorded.interaction_type == InteractionType.VIEW_PRODUCT
        assert recorded.product_id == 'p1'
        assert recorded.metadata['source'] == 'recommendation'
        assert recorded.created_at == NOW

    def test_logs_outside_attribution_window_are_untouched(self, tracker, store):
        stale = self._serve(tracker, ['p1'], NOW - timedelta(hours=30))
        assert asyncio.run(tracker.track_click('u-1', 'buyer-1', 'p1', now=NOW)) is True
        assert stale.clicked_product_id is None
        assert len(store.interactions) == 1

    def test_other_users_logs_are_untouched(self, tracker, store):
        served = self._serve(tracker, ['p1'], NOW - timedelta(hours=1))
        asyncio.run(tracker.track_click('u-2', 'buyer-1', 'p1', now=NOW))
        assert served.clicked_product_id is None

    def test_custom_attribution_window(self, store):
        tracker = RecommendationTracker(store, attribution_hours=48)
        served = self._serve(tracker, ['p1'], NOW - timedelta(hours=30))
        asyncio.run(tracker.track_click('u-1', 'buyer-1', 'p1', now=NOW))
        assert served.clicked_product_id == 'p1'

    def test_naive_click_time_matches_aware_log(self, tracker, store):
        served = self._serve(tracker, ['p1'], NOW - timedelta(hours=1))
        naive_now = NOW.replace(tzinfo=None)

        assert asyncio.run(tracker.track_click('u-1', 'buyer-1', 'p1', now=naive_now)) is True
        assert served.clicked_product_id == 'p1'
        assert served.clicked_at == NOW
        assert store.interactions[0].created_at == NOW

    def test_naive_log_time_matches_aware_click(self, tracker, store):
        served = self._serve(tracker, ['p1'], (NOW - timedelta(hours=1)).replace(tzinfo=None))
        assert served.created_at == NOW - timedelta(hours=1)
        assert served.created_at.tzinfo is not None

        assert asyncio.run(tracker.track_click('u-1', 'buyer-1', 'p1', now=NOW)) is True
        assert served.clicked_product_id == 'p1'

    def test_store_failure_returns_false(self, caplog):
        tracker = RecommendationTracker(FailingStore())
        with caplog.at_level(logging.WARNING, logger='supplymatch.tracking'):
            tracked = asyncio.run(tracker.track_click('u-1', 'buyer-1', 'p1', now=NOW))
        assert tracked is False
        assert 'Failed to track recommendation click' in caplog.text


@pytest.mark.unit
def test_base_store_is_abstract():
    with pytest.raises(NotImplementedError):
        asyncio.run(RecommendationStore().create_interaction(None))
