"""
Supplymatch: Recommendation Engine

Scores catalog products for one buyer from already-fetched activity:
  1. browsing        similarity to the user's own recent views
  2. industry        popularity among peer organizations of the same type
  3. trending        week-over-week growth in view counts
  4. similar_buyers  products other users with overlapping interest touched
  5. hybrid          weighted blend of the four

Every algorithm only returns LIVE products from verified organizations that
the caller has not excluded. Scores are normalized to 0.0-1.0.
"""
from __future__ import annotations
import logging
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Iterable, Optional

from .models import (
    ActivitySnapshot, Algorithm, InteractionType,
    Organization, Product, RecommendationResult,
)
from .utils import as_utc, round_half_up, utc_now

logger = logging.getLogger(__name__)

OrgVerifier = Callable[[str], bool]


# ============================================================
# Configuration Records
# ============================================================

@dataclass(frozen=True)
class ActivityWindows:
    """Look-back windows (days) and sampling caps for each signal."""
    browsing_days: int = 30
    browsing_max_views: int = 20
    industry_days: int = 60
    industry_peer_sample: int = 100
    trending_days: int = 7
    similar_buyer_days: int = 90


DEFAULT_WINDOWS = ActivityWindows()


@dataclass(frozen=True)
class HybridWeights:
    browsing: float = 0.40
    industry: float = 0.25
    trending: float = 0.20
    similar_buyers: float = 0.15


DEFAULT_HYBRID_WEIGHTS = HybridWeights()


# Interaction types that count as interest when mining similar buyers
PEER_INTEREST_TYPES = frozenset({
    InteractionType.VIEW_PRODUCT,
    InteractionType.REQUEST_QUOTE,
    InteractionType.COMPLETE_PAYMENT,
})

REASON_SIMILAR_VIEWS = "Similar to products you've recently viewed"


# ============================================================
# Helpers
# ============================================================

def _clamp_unit(value: float) -> float:
    return max(0.0, min(1.0, value))


def price_similarity(a: float, b: float) -> float:
    """min/max ratio of two prices; identical prices (including 0) give 1.0."""
    high = max(a, b)
    if high <= 0:
        return 1.0 if a == b else 0.0
    return min(a, b) / high


def rank(results: Iterable[RecommendationResult], limit: int) -> list[RecommendationResult]:
    """Sort by score descending (stable) and keep the first `limit`."""
    ordered = sorted(results, key=lambda r: r.score, reverse=True)
    return ordered[:max(0, limit)]


def combine_recommendations(
    sources: Iterable[tuple[list[RecommendationResult], float]],
    limit: int,
) -> list[RecommendationResult]:
    """
    Blend several result lists into hybrid results.

    A product's hybrid score is the sum of score * weight over the sources that
    returned it. The first contributing reason becomes the headline; every
    reason and source algorithm is kept in metadata.
    """
    combined: dict[str, dict] = {}
    for results, weight in sources:
        for r in results:
            entry = combined.setdefault(
                r.product_id, {'score': 0.0, 'reasons': [], 'algorithms': []})
            entry['score'] += r.score * weight
            entry['reasons'].append(r.reason)
            entry['algorithms'].append(r.algorithm.value)

    blended = [
        RecommendationResult(
            product_id=pid,
            score=_clamp_unit(data['score']),
            reason=data['reasons'][0],
            algorithm=Algorithm.HYBRID,
            metadata={
                'all_reasons': data['reasons'],
                'source_algorithms': data['algorithms'],
            },
        )
        for pid, data in combined.items()
    ]
    return rank(blended, limit)


@dataclass
class _Run:
    """Per-call view over the snapshot, with eligibility resolved once."""
    snapshot: ActivitySnapshot
    user_id: str
    org_id: str
    now: datetime
    excluded: frozenset[str]
    verifier: OrgVerifier
    products: dict[str, Product]
    orgs: dict[str, Organization]

    def eligible(self, product: Optional[Product]) -> bool:
        return (
            product is not None
            and product.is_live
            and product.id not in self.excluded
            and self.verifier(product.org_id)
        )

    def supplier_name(self, product: Product) -> str:
        if product.org is not None:
            return product.org.name
        org = self.orgs.get(product.org_id)
        return org.name if org else product.org_id


# ============================================================
# Recommendation Engine
# ============================================================

class RecommendationEngine:
    """
    Pure scoring over an ActivitySnapshot. Fetching the snapshot and logging
    the results are the caller's job (see tracking.RecommendationTracker).
    """

    def __init__(
        self,
        weights: HybridWeights = DEFAULT_HYBRID_WEIGHTS,
        windows: ActivityWindows = DEFAULT_WINDOWS,
        verifier: Optional[OrgVerifier] = None,
    ):
        self.weights = weights
        self.windows = windows
        self.verifier = verifier
        self._scorers: dict[Algorithm, Callable[[_Run, int], list[RecommendationResult]]] = {
            Algorithm.BROWSING: self._browsing,
            Algorithm.INDUSTRY: self._industry,
            Algorithm.TRENDING: self._trending,
            Algorithm.SIMILAR_BUYERS: self._similar_buyers,
            Algorithm.HYBRID: self._hybrid,
        }

    def recommendations_for_user(
        self,
        user_id: str,
        org_id: str,
        snapshot: ActivitySnapshot,
        limit: int = 10,
        exclude_ids: Iterable[str] = (),
        algorithm: Algorithm = Algorithm.HYBRID,
        now: Optional[datetime] = None,
    ) -> list[RecommendationResult]:
        run = self._start_run(user_id, org_id, snapshot, exclude_ids, now)
        results = self._scorers[Algorithm(algorithm)](run, limit)
        logger.debug(
            "algorithm=%s user=%s org=%s candidates=%d results=%d",
            Algorithm(algorithm).value, user_id, org_id,
            len(snapshot.products), len(results))
        return results

    def _start_run(
        self,
        user_id: str,
        org_id: str,
        snapshot: ActivitySnapshot,
        exclude_ids: Iterable[str],
        now: Optional[datetime],
    ) -> _Run:
        orgs = snapshot.org_index()
        verifier = self.verifier
        if verifier is None:
            def verifier(oid: str) -> bool:
                org = orgs.get(oid)
                return org is not None and org.verified
        return _Run(
            snapshot=snapshot,
            user_id=user_id,
            org_id=org_id,
            now=utc_now(now),
            excluded=frozenset(exclude_ids),
            verifier=verifier,
            products=snapshot.product_index(),
            orgs=orgs,
        )

    # ----------------------------------------------------------
    # Browsing
    # ----------------------------------------------------------

    def _browsing(self, run: _Run, limit: int) -> list[RecommendationResult]:
        cutoff = run.now - timedelta(days=self.windows.browsing_days)
        own_views = [
            v for v in run.snapshot.views
            if v.user_id == run.user_id and v.org_id == run.org_id
            and as_utc(v.viewed_at) >= cutoff
        ]
        own_views.sort(key=lambda v: as_utc(v.viewed_at), reverse=True)
        own_views = own_views[:self.windows.browsing_max_views]

        viewed = [run.products[v.product_id] for v in own_views if v.product_id in run.products]
        if not viewed:
            return []

        categories = {p.category for p in viewed}
        viewed_ids = {v.product_id for v in own_views}
        viewed_suppliers = {p.org_id for p in viewed}
        avg_price = sum(p.price_midpoint for p in viewed) / len(viewed)

        results = []
        for product in run.snapshot.products:
            if product.category not in categories or product.id in viewed_ids:
                continue
            if not run.eligible(product):
                continue

            score = 0.5
            same_supplier = product.org_id in viewed_suppliers
            if same_supplier:
                score += 0.3
            score += price_similarity(avg_price, product.price_midpoint) * 0.2

            reason = (
                f"From {run.supplier_name(product)} - a supplier you've viewed before"
                if same_supplier else REASON_SIMILAR_VIEWS
            )
            results.append(RecommendationResult(
                product_id=product.id,
                score=_clamp_unit(score),
                reason=reason,
                algorithm=Algorithm.BROWSING,
            ))
        return rank(results, limit)

    # ----------------------------------------------------------
    # Industry
    # ----------------------------------------------------------

    def _industry(self, run: _Run, limit: int) -> list[RecommendationResult]:
        current = run.orgs.get(run.org_id)
        if current is None:
            return []

        peers = sorted(
            o.id for o in run.snapshot.organizations
            if o.type == current.type and o.id != current.id and not o.deleted
        )[:self.windows.industry_peer_sample]
        peer_ids = set(peers)
        if not peer_ids:
            return []

        cutoff = run.now - timedelta(days=self.windows.industry_days)
        counts = Counter(
            v.product_id for v in run.snapshot.views
            if v.org_id in peer_ids and as_utc(v.viewed_at) >= cutoff
        )

        results = []
        for product_id, count in counts.most_common():
            if not run.eligible(run.products.get(product_id)):
                continue
            results.append(RecommendationResult(
                product_id=product_id,
                score=_clamp_unit(count / 10),
                reason=f"Popular among {count} similar companies in your industry",
                algorithm=Algorithm.INDUSTRY,
            ))
        return rank(results, limit)

    # ----------------------------------------------------------
    # Trending
    # ----------------------------------------------------------

    def _trending(self, run: _Run, limit: int) -> list[RecommendationResult]:
        window = timedelta(days=self.windows.trending_days)
        recent_start = run.now - window
        previous_start = recent_start - window

        recent: Counter[str] = Counter()
        previous: Counter[str] = Counter()
        for v in run.snapshot.views:
            ts = as_utc(v.viewed_at)
            if recent_start <= ts <= run.now:
                recent[v.product_id] += 1
            elif previous_start <= ts < recent_start:
                previous[v.product_id] += 1

        results = []
        for product_id, recent_count in recent.items():
            previous_count = previous.get(product_id, 0)
            if previous_count > 0:
                growth = (recent_count - previous_count) / previous_count
            else:
                growth = recent_count / 10  # no prior data: baseline score
            if growth <= 0:
                continue
            growth = min(growth, 2.0)

            if not run.eligible(run.products.get(product_id)):
                continue
            results.append(RecommendationResult(
                product_id=product_id,
                score=_clamp_unit(growth / 2),
                reason=f"Trending - {round_half_up(growth * 100)}% increase in interest this week",
                algorithm=Algorithm.TRENDING,
            ))
        return rank(results, limit)

    # ----------------------------------------------------------
    # Similar Buyers
    # ----------------------------------------------------------

    def _similar_buyers(self, run: _Run, limit: int) -> list[RecommendationResult]:
        cutoff = run.now - timedelta(days=self.windows.similar_buyer_days)
        interactions = run.snapshot.interactions

        own_products = {
            i.product_id for i in interactions
            if i.user_id == run.user_id and i.org_id == run.org_id
            and i.product_id and as_utc(i.created_at) >= cutoff
        }
        if not own_products:
            return []

        peer_users = {
            i.user_id for i in interactions
            if i.product_id in own_products and i.user_id != run.user_id
            and as_utc(i.created_at) >= cutoff
        }
        if not peer_users:
            return []

        counts = Counter(
            i.product_id for i in interactions
            if i.user_id in peer_users and i.product_id
            and i.product_id not in own_products
            and i.interaction_type in PEER_INTEREST_TYPES
        )

        results = []
        for product_id, count in counts.items():
            if not run.eligible(run.products.get(product_id)):
                continue
            results.append(RecommendationResult(
                product_id=product_id,
                score=_clamp_unit(count / 5),
                reason=f"{count} similar buyers have shown interest in this product",
                algorithm=Algorithm.SIMILAR_BUYERS,
            ))
        return rank(results, limit)

    # ----------------------------------------------------------
    # Hybrid
    # ----------------------------------------------------------

    def _hybrid(self, run: _Run, limit: int) -> list[RecommendationResult]:
        w = self.weights
        return combine_recommendations([
            (self._browsing(run, limit * 2), w.browsing),
            (self._industry(run, limit), w.industry),
            (self._trending(run, limit), w.trending),
            (self._similar_buyers(run, limit), w.similar_buyers),
        ], limit)
