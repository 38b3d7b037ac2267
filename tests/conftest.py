"""
Shared fixtures: a buyer requirement, a small robot catalog and the
organizations / timestamps used by the recommendation tests.
"""

from datetime import datetime, timedelta, timezone

import pytest

from supplymatch.models import (
    ActivitySnapshot, Organization, Product, ProductView,
    Requirement, UserInteraction,
)


NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def days_ago(days: float) -> datetime:
    return NOW - timedelta(days=days)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def requirement():
    return Requirement(
        use_case='Pick and place operations',
        payload_kg=10,
        throughput_per_hr=150,
        integration='PLC',
        timeline_weeks=12,
        budget_range='₹5-10 lakhs',
        location='Chennai',
        uptime_target_pct=95,
    )


@pytest.fixture
def catalog():
    """Three LIVE robots and one DRAFT listing."""
    return [
        Product(
            id='prod-1', org_id='org-1', category='SixAxis',
            title='KUKA KR 10 R1100-2', sku='KUKA-KR10-001',
            payload_kg=10, reach_mm=1100, repeatability_mm=0.03,
            max_speed_mps=2.0, ip_rating='IP54', controller='Siemens S7-1500',
            specs={
                'certifications': ['CE', 'ISO 9001'],
                'safetyRating': 'high',
                'connectivity': ['Profinet', 'Ethernet'],
                'warrantyMonths': 24,
                'mttrHours': 4,
                'serviceTeam': True,
                'remoteDiagnostics': True,
                'reliabilityRating': 'high',
                'prioritySupport': True,
                'operatingCostINRPerYear': 50000,
                'maintenanceCostINRPerYear': 30000,
            },
            price_min_inr=800000, price_max_inr=900000,
            lead_time_weeks=8, status='LIVE',
            org={'name': 'KUKA India', 'type': 'SUPPLIER'},
        ),
        Product(
            id='prod-2', org_id='org-2', category='SCARA',
            title='Epson G10-A01', sku='EPSON-G10-001',
            payload_kg=15, reach_mm=900, repeatability_mm=0.02,
            max_speed_mps=3.5, ip_rating='IP65', controller='Epson RC700-A',
            specs={
                'certifications': ['CE'],
                'safetyRating': 'medium',
                'connectivity': ['EtherCAT'],
                'warrantyMonths': 12,
                'mttrHours': 6,
                'serviceTeam': False,
                'remoteDiagnostics': False,
            },
            price_min_inr=400000, price_max_inr=700000,
            lead_time_weeks=16, status='LIVE',
            org={'name': 'Epson India', 'type': 'SUPPLIER'},
        ),
        Product(
            id='prod-3', org_id='org-3', category='AGV',
            title='MiR100 AGV', sku='MIR-100-001',
            payload_kg=100, max_speed_mps=1.5,
            controller='MiR Fleet Controller',
            specs={
                'certifications': ['CE', 'FCC'],
                'connectivity': ['WiFi', 'Ethernet'],
                'warrantyMonths': 36,
                'mttrHours': 2,
                'serviceTeam': True,
                'remoteDiagnostics': True,
            },
            price_min_inr=1500000, price_max_inr=1600000,
            lead_time_weeks=6, status='LIVE',
            org={'name': 'MiR India', 'type': 'SUPPLIER'},
        ),
        Product(
            id='prod-4', org_id='org-4', category='SixAxis',
            title='Draft Robot', sku='DRAFT-001',
            payload_kg=5,
            price_min_inr=300000, price_max_inr=400000,
            lead_time_weeks=4, status='DRAFT',
        ),
    ]


# ============================================================
# Recommendation fixtures
# ============================================================

@pytest.fixture
def organizations():
    return [
        Organization(id='buyer-1', name='Chennai Auto Parts', type='MANUFACTURER', verified=True),
        Organization(id='buyer-2', name='Pune Castings', type='MANUFACTURER', verified=True),
        Organization(id='buyer-3', name='Hosur Assemblies', type='MANUFACTURER', verified=True),
        Organization(id='buyer-del', name='Closed Works', type='MANUFACTURER', deleted=True),
        Organization(id='buyer-x', name='Metro Logistics', type='LOGISTICS', verified=True),
        Organization(id='sup-a', name='KUKA India', type='SUPPLIER', verified=True),
        Organization(id='sup-b', name='Epson India', type='SUPPLIER', verified=True),
        Organization(id='sup-u', name='Pending Robotics', type='SUPPLIER', verified=False),
    ]


def _robot(pid, org_id, category, low, high, status='LIVE'):
    return Product(
        id=pid, org_id=org_id, category=category, title=pid.upper(),
        price_min_inr=low, price_max_inr=high, lead_time_weeks=8, status=status,
    )


@pytest.fixture
def marketplace_products():
    return [
        _robot('p-viewed', 'sup-a', 'SixAxis', 800000, 900000),
        _robot('p-same-sup', 'sup-a', 'SixAxis', 850000, 850000),
        _robot('p-other-sup', 'sup-b', 'SixAxis', 400000, 450000),
        _robot('p-unverified', 'sup-u', 'SixAxis', 800000, 900000),
        _robot('p-draft', 'sup-a', 'SixAxis', 800000, 900000, status='DRAFT'),
        _robot('p-agv', 'sup-b', 'AGV', 1500000, 1600000),
        _robot('p-hot', 'sup-b', 'SCARA', 400000, 700000),
    ]


@pytest.fixture
def make_snapshot(marketplace_products, organizations):
    def _make(views=(), interactions=()):
        return ActivitySnapshot(
            products=marketplace_products,
            organizations=organizations,
            views=list(views),
            interactions=list(interactions),
        )
    return _make


def view(user_id, org_id, product_id, age_days):
    return ProductView(
        user_id=user_id, org_id=org_id, product_id=product_id,
        viewed_at=days_ago(age_days),
    )


def interaction(user_id, org_id, product_id, kind, age_days):
    return UserInteraction(
        user_id=user_id, org_id=org_id, product_id=product_id,
        interaction_type=kind, created_at=days_ago(age_days),
    )
