"""
Supplymatch: Core Pydantic Models

Buyer requirements, supplier products, marketplace activity records and the
result types produced by the matching and recommendation engines.
"""
from __future__ import annotations
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator

# ============================================================
# Enums
# ============================================================

class IntegrationStyle(str, Enum):
    PLC = "PLC"
    FIELDBUS = "Fieldbus"
    STANDALONE = "Standalone"
    OTHER = "Other"

class ProductStatus(str, Enum):
    DRAFT = "DRAFT"
    LIVE = "LIVE"
    DISABLED = "DISABLED"

class Algorithm(str, Enum):
    HYBRID = "hybrid"
    BROWSING = "browsing"
    INDUSTRY = "industry"
    TRENDING = "trending"
    SIMILAR_BUYERS = "similar_buyers"

class InteractionType(str, Enum):
    VIEW_PRODUCT = "VIEW_PRODUCT"
    REQUEST_QUOTE = "REQUEST_QUOTE"
    COMPLETE_PAYMENT = "COMPLETE_PAYMENT"
    SEARCH = "SEARCH"
    SUBMIT_INTAKE = "SUBMIT_INTAKE"

class RecommendationType(str, Enum):
    BROWSING_HISTORY = "BROWSING_HISTORY"
    INDUSTRY_SIMILAR = "INDUSTRY_SIMILAR"
    TRENDING_REGION = "TRENDING_REGION"
    SIMILAR_BUYERS = "SIMILAR_BUYERS"

# ============================================================
# Buyer Requirement (intake)
# ============================================================

class Requirement(BaseModel):
    """A buyer's submitted intake. Frozen once constructed."""
    model_config = ConfigDict(frozen=True)

    use_case: str = Field(min_length=1)
    payload_kg: float = Field(ge=0)
    throughput_per_hr: float = Field(ge=0)
    integration: IntegrationStyle
    timeline_weeks: float = Field(ge=1)
    budget_range: Optional[str] = None
    location: Optional[str] = None
    uptime_target_pct: Optional[float] = Field(default=None, ge=0, le=100)

# ============================================================
# Supplier Product (candidate)
# ============================================================

class ProductSpecs(BaseModel):
    """
    Recognised keys of a product's open attribute bag.

    Every key is optional; None means "not declared". Unrecognised keys are
    kept (extra='allow') so supplier metadata survives a round trip, but the
    engines only ever read the fields declared here.
    """
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    certifications: Optional[list[str]] = None
    safety_rating: Optional[str] = Field(default=None, alias="safetyRating")
    connectivity: Optional[list[str]] = None
    service_team: Optional[bool] = Field(default=None, alias="serviceTeam")
    remote_diagnostics: Optional[bool] = Field(default=None, alias="remoteDiagnostics")
    training_included: Optional[bool] = Field(default=None, alias="trainingIncluded")
    warranty_months: Optional[float] = Field(default=None, alias="warrantyMonths")
    mttr_hours: Optional[float] = Field(default=None, alias="mttrHours")
    priority_support: Optional[bool] = Field(default=None, alias="prioritySupport")
    reliability_rating: Optional[str] = Field(default=None, alias="reliabilityRating")
    operating_cost_inr_per_year: Optional[float] = Field(
        default=None, alias="operatingCostINRPerYear")
    maintenance_cost_inr_per_year: Optional[float] = Field(
        default=None, alias="maintenanceCostINRPerYear")

class OrgSummary(BaseModel):
    name: str
    type: Optional[str] = None

class Product(BaseModel):
    id: str
    org_id: str
    category: str
    title: str = ""
    sku: str = ""

    # Technical attributes
    payload_kg: Optional[float] = None
    reach_mm: Optional[float] = None
    repeatability_mm: Optional[float] = None
    max_speed_mps: Optional[float] = None
    ip_rating: Optional[str] = None
    controller: Optional[str] = None

    specs: ProductSpecs = Field(default_factory=ProductSpecs)

    # Commercial
    price_min_inr: float = Field(ge=0)
    price_max_inr: float = Field(ge=0)
    lead_time_weeks: float = Field(ge=0)

    status: ProductStatus = ProductStatus.DRAFT
    org: Optional[OrgSummary] = None

    @model_validator(mode="after")
    def _check_price_band(self) -> "Product":
        if self.price_max_inr < self.price_min_inr:
            raise ValueError("price_max_inr must be >= price_min_inr")
        return self

    @property
    def is_live(self) -> bool:
        return self.status == ProductStatus.LIVE

    @property
    def price_midpoint(self) -> float:
        return (self.price_min_inr + self.price_max_inr) / 2

# ============================================================
# Match Result Models
# ============================================================

class ScoreBreakdown(BaseModel):
    spec: float
    integration: float
    lead_time: float
    service: float
    warranty: float
    cost: float

class PurchaseOffer(BaseModel):
    price_inr: int
    description: str

class LeaseOffer(BaseModel):
    monthly_inr: int
    term_months: int
    description: str

class PilotOffer(BaseModel):
    duration_weeks: int
    cost_inr: int
    description: str

class Commercials(BaseModel):
    purchase: PurchaseOffer
    lease: LeaseOffer
    pilot: PilotOffer

class DeliveryInstall(BaseModel):
    install_window_weeks: int
    training_hours: int
    support_included: bool = True

class ServiceLevel(BaseModel):
    uptime_guarantee: float
    response_time_hours: float
    restore_time_hours: float

class MatchResult(BaseModel):
    product_id: str
    fit_score: int = Field(ge=0, le=100)
    why: list[str]
    assumptions: list[str] = Field(default_factory=list)
    commercials: Commercials
    delivery_install: DeliveryInstall
    sla: ServiceLevel
    breakdown: ScoreBreakdown

# ============================================================
# Marketplace Activity (recommendation inputs)
# ============================================================

class Organization(BaseModel):
    id: str
    name: str
    type: str
    verified: bool = False
    deleted: bool = False

class ProductView(BaseModel):
    user_id: str
    org_id: str
    product_id: str
    viewed_at: datetime

class UserInteraction(BaseModel):
    user_id: str
    org_id: str
    product_id: Optional[str] = None
    interaction_type: InteractionType
    created_at: datetime
    metadata: dict[str, Any] = Field(default_factory=dict)

class ActivitySnapshot(BaseModel):
    """Already-fetched marketplace data a recommendation run scores over."""
    products: list[Product] = Field(default_factory=list)
    organizations: list[Organization] = Field(default_factory=list)
    views: list[ProductView] = Field(default_factory=list)
    interactions: list[UserInteraction] = Field(default_factory=list)

    def product_index(self) -> dict[str, Product]:
        return {p.id: p for p in self.products}

    def org_index(self) -> dict[str, Organization]:
        return {o.id: o for o in self.organizations}

# ============================================================
# Recommendation Result Models
# ============================================================

class RecommendationResult(BaseModel):
    product_id: str
    score: float = Field(ge=0.0, le=1.0)
    reason: str
    algorithm: Algorithm
    metadata: Optional[dict[str, Any]] = None

class RecommendationLog(BaseModel):
    id: str
    user_id: str
    org_id: str
    recommendation_type: RecommendationType
    product_ids: list[str]
    algorithm: Algorithm
    score: float
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    clicked_product_id: Optional[str] = None
    clicked_at: Optional[datetime] = None
