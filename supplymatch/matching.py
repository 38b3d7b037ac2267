"""
Supplymatch: Matching Engine

Ranks supplier products against one buyer requirement:
  1. Drop every product that is not LIVE
  2. Score six independent dimensions (0-100 each)
  3. Blend them with a weight vector into an integer FitScore
  4. Attach explanations, assumptions, commercials, delivery and SLA terms
  5. Return the top N by FitScore (stable on ties)
"""
from __future__ import annotations
import logging
import math
from dataclasses import dataclass
from typing import Iterable

from .models import (
    Requirement, Product, IntegrationStyle,
    MatchResult, ScoreBreakdown, Commercials,
    PurchaseOffer, LeaseOffer, PilotOffer,
    DeliveryInstall, ServiceLevel,
)
from .utils import round_half_up

logger = logging.getLogger(__name__)


# ============================================================
# Configuration Records
# ============================================================

@dataclass(frozen=True)
class MatchingWeights:
    """Weight per scoring dimension. Expected to sum to 1.0."""
    spec: float = 0.40
    integration: float = 0.20
    lead_time: float = 0.10
    service: float = 0.15
    warranty: float = 0.10
    cost: float = 0.05


DEFAULT_WEIGHTS = MatchingWeights()


@dataclass(frozen=True)
class CommercialPolicy:
    """Multipliers used to derive offers from a price band midpoint."""
    lease_monthly_rate: float = 0.08
    lease_term_months: int = 36
    pilot_cost_rate: float = 0.15
    pilot_duration_weeks: int = 8


DEFAULT_POLICY = CommercialPolicy()


# Controller keywords (matched case-insensitively as substrings)
PLC_VENDOR_KEYWORDS = ('siemens', 'abb', 'rockwell')
FIELDBUS_PROTOCOL_KEYWORDS = ('profinet', 'ethercat')

SIX_AXIS_CATEGORY = 'SixAxis'
DEFAULT_WARRANTY_MONTHS = 12
DEFAULT_RESTORE_HOURS = 8

FALLBACK_REASON = 'Meets basic requirements with room for optimization'
ASSUMPTION_PAYLOAD = 'Payload capacity assumed adequate based on category'
ASSUMPTION_LOCATION = 'Service coverage assumed available in major Indian cities'
ASSUMPTION_UPTIME = 'Standard uptime requirements (95%+) assumed'


# ============================================================
# Dimension Scorers (each returns 0-100)
# ============================================================

def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def _number(value: float) -> str:
    """Plain decimal rendering for reason strings (10 -> '10', 1e6 -> '1000000')."""
    return f"{value:.15g}"


def _mentions_any(text: str, keywords: Iterable[str]) -> bool:
    t = text.lower()
    return any(kw in t for kw in keywords)


def spec_score(req: Requirement, product: Product) -> float:
    """Payload fit, speed vs throughput, and declared technical metadata."""
    score = 50.0

    if product.payload_kg is not None:
        if product.payload_kg >= req.payload_kg:
            score += 20
        else:
            deficit = ((req.payload_kg - product.payload_kg) / req.payload_kg
                       if req.payload_kg > 0 else 1.0)
            score -= min(30.0, deficit * 100)

    if product.max_speed_mps is not None and req.throughput_per_hr > 100:
        score += 15 if product.max_speed_mps > 1.5 else 5

    specs = product.specs
    if specs.certifications:
        score += 10
    if specs.safety_rating:
        score += 5
    if specs.connectivity:
        score += 5

    return _clamp(score)


def integration_score(req: Requirement, product: Product) -> float:
    """Controller compatibility with the buyer's integration style."""
    score = 30.0
    controller = product.controller

    if req.integration == IntegrationStyle.PLC:
        if controller and _mentions_any(controller, PLC_VENDOR_KEYWORDS):
            score += 50
        elif controller:
            score += 20
    elif req.integration == IntegrationStyle.FIELDBUS:
        if controller and _mentions_any(controller, FIELDBUS_PROTOCOL_KEYWORDS):
            score += 60
        elif controller:
            score += 25
    elif req.integration == IntegrationStyle.STANDALONE:
        score += 40

    if product.specs.connectivity:
        score += 20

    return _clamp(score)


def lead_time_score(req: Requirement, product: Product) -> float:
    if product.lead_time_weeks <= req.timeline_weeks:
        return 100.0
    if req.timeline_weeks <= 0:
        return 0.0

    delay = product.lead_time_weeks - req.timeline_weeks
    penalty = (delay / req.timeline_weeks) * 100
    return max(0.0, 100 - penalty)


def service_score(req: Requirement, product: Product) -> float:
    """Service coverage. A stated location is taken as a coverage proxy."""
    score = 40.0

    if req.location:
        score += 20

    specs = product.specs
    if specs.service_team:
        score += 20
    if specs.remote_diagnostics:
        score += 15
    if specs.training_included:
        score += 5

    return _clamp(score)


def warranty_score(product: Product) -> float:
    score = 40.0
    specs = product.specs

    months = specs.warranty_months
    if months is None:
        months = DEFAULT_WARRANTY_MONTHS
    if months >= 24:
        score += 30
    elif months >= 12:
        score += 20
    else:
        score += 10

    mttr = specs.mttr_hours
    if mttr is not None:
        if mttr <= 4:
            score += 30
        elif mttr <= 8:
            score += 20
        else:
            score += 10

    return _clamp(score)


def cost_score(product: Product) -> float:
    """Price-band tightness plus declared running costs."""
    score = 30.0

    if product.price_min_inr > 0:
        spread = (product.price_max_inr - product.price_min_inr) / product.price_min_inr
    else:
        spread = math.inf  # no usable base price: treat as a wide band

    if spread < 0.2:
        score += 40
    elif spread < 0.5:
        score += 30
    else:
        score += 20

    specs = product.specs
    if specs.operating_cost_inr_per_year is not None:
        score += 20
    if specs.maintenance_cost_inr_per_year is not None:
        score += 10

    return _clamp(score)


def score_breakdown(req: Requirement, product: Product) -> ScoreBreakdown:
    return ScoreBreakdown(
        spec=spec_score(req, product),
        integration=integration_score(req, product),
        lead_time=lead_time_score(req, product),
        service=service_score(req, product),
        warranty=warranty_score(product),
        cost=cost_score(product),
    )


def fit_score(breakdown: ScoreBreakdown, weights: MatchingWeights = DEFAULT_WEIGHTS) -> int:
    """Weighted blend of the six dimensions, rounded and clamped to 0-100."""
    total = (
        breakdown.spec * weights.spec
        + breakdown.integration * weights.integration
        + breakdown.lead_time * weights.lead_time
        + breakdown.service * weights.service
        + breakdown.warranty * weights.warranty
        + breakdown.cost * weights.cost
    )
    return int(_clamp(round_half_up(total)))


# ============================================================
# Result Generators
# ============================================================

def explain_match(req: Requirement, product: Product, breakdown: ScoreBreakdown) -> list[str]:
    reasons: list[str] = []

    if breakdown.spec > 70:
        reasons.append(
            f"Excellent spec match - handles {_number(req.payload_kg)}kg payload requirement")
    if breakdown.integration > 70:
        reasons.append(
            f"Strong integration compatibility with {req.integration.value} systems")
    if breakdown.lead_time > 90:
        reasons.append(
            f"Fast delivery - {_number(product.lead_time_weeks)} weeks meets your "
            f"{_number(req.timeline_weeks)} week timeline")
    if breakdown.service > 70:
        reasons.append('Comprehensive service coverage and support')

    if not reasons:
        reasons.append(FALLBACK_REASON)
    return reasons


def list_assumptions(req: Requirement, product: Product) -> list[str]:
    assumptions: list[str] = []
    if product.payload_kg is None:
        assumptions.append(ASSUMPTION_PAYLOAD)
    if not req.location:
        assumptions.append(ASSUMPTION_LOCATION)
    if req.uptime_target_pct is None:
        assumptions.append(ASSUMPTION_UPTIME)
    return assumptions


def build_commercials(product: Product, policy: CommercialPolicy = DEFAULT_POLICY) -> Commercials:
    base_price = product.price_midpoint
    return Commercials(
        purchase=PurchaseOffer(
            price_inr=round_half_up(base_price),
            description='CAPEX purchase including basic installation and 1-year warranty',
        ),
        lease=LeaseOffer(
            monthly_inr=round_half_up(base_price * policy.lease_monthly_rate),
            term_months=policy.lease_term_months,
            description=f"{policy.lease_term_months}-month lease with maintenance "
                        f"included, option to purchase",
        ),
        pilot=PilotOffer(
            duration_weeks=policy.pilot_duration_weeks,
            cost_inr=round_half_up(base_price * policy.pilot_cost_rate),
            description=f"{policy.pilot_duration_weeks}-week paid pilot program, "
                        f"cost adjustable against purchase",
        ),
    )


def build_delivery_install(product: Product) -> DeliveryInstall:
    return DeliveryInstall(
        install_window_weeks=max(2, math.ceil(product.lead_time_weeks * 0.2)),
        training_hours=40 if product.category == SIX_AXIS_CATEGORY else 24,
        support_included=True,
    )


def build_sla(product: Product) -> ServiceLevel:
    specs = product.specs
    high_reliability = specs.reliability_rating == 'high'
    return ServiceLevel(
        uptime_guarantee=95 + (2 if high_reliability else 0),
        response_time_hours=2 if specs.priority_support else 4,
        restore_time_hours=(specs.mttr_hours if specs.mttr_hours is not None
                            else DEFAULT_RESTORE_HOURS),
    )


# ============================================================
# Matching Engine
# ============================================================

class MatchingEngine:
    """
    Computes FitScore (0-100) for each LIVE product against a requirement.
    Stateless apart from its weights and commercial policy; safe to share.
    """

    def __init__(
        self,
        weights: MatchingWeights = DEFAULT_WEIGHTS,
        policy: CommercialPolicy = DEFAULT_POLICY,
    ):
        self.weights = weights
        self.policy = policy

    def match_products(
        self,
        req: Requirement,
        products: Iterable[Product],
        max_results: int = 3,
    ) -> list[MatchResult]:
        """Score every LIVE product and return the best `max_results`."""
        products = list(products)
        live = [p for p in products if p.is_live]
        logger.debug(
            "Matching %d candidates (%d live) for use case %r",
            len(products), len(live), req.use_case)

        matches = [self.compute_match(req, p) for p in live]
        # list.sort is stable: equal scores keep evaluation order
        matches.sort(key=lambda m: m.fit_score, reverse=True)
        return matches[:max(0, max_results)]

    def compute_match(self, req: Requirement, product: Product) -> MatchResult:
        breakdown = score_breakdown(req, product)
        return MatchResult(
            product_id=product.id,
            fit_score=fit_score(breakdown, self.weights),
            why=explain_match(req, product, breakdown),
            assumptions=list_assumptions(req, product),
            commercials=build_commercials(product, self.policy),
            delivery_install=build_delivery_install(product),
            sla=build_sla(product),
            breakdown=breakdown,
        )
