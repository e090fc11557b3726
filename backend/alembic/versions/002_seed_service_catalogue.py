"""Seed the public service catalogue.

Revision ID: 002_seed_service_catalogue
Revises: 001_initial_schema
Create Date: 2026-10-19 00:10:00.000000

Idempotent - existing slugs are left untouched.
"""
from typing import Sequence, Union
from uuid import uuid4

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '002_seed_service_catalogue'
down_revision: str = '001_initial_schema'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

SERVICES = [
    # Detailing and cosmetic
    {"name": "Mobile Detailing", "slug": "mobile-detailing",
     "description": "Full interior and exterior detailing at your location", "icon": "sparkles",
     "is_popular": True, "display_order": 1},
    {"name": "Car Wash", "slug": "car-wash",
     "description": "Exterior wash and dry", "icon": "droplets",
     "is_popular": True, "display_order": 2},
    {"name": "Interior Cleaning", "slug": "interior-cleaning",
     "description": "Deep clean of upholstery, carpets, and surfaces", "icon": "brush",
     "is_popular": False, "display_order": 3},
    {"name": "Window Tinting", "slug": "window-tinting",
     "description": "Professional window tint installation", "icon": "sun",
     "is_popular": False, "display_order": 4},
    # Light maintenance
    {"name": "Oil Change", "slug": "oil-change",
     "description": "Regular oil and filter replacement", "icon": "oil-can",
     "is_popular": True, "display_order": 5},
    {"name": "Tire Service", "slug": "tire-service",
     "description": "Rotation, seasonal swap, or puncture repair", "icon": "circle",
     "is_popular": True, "display_order": 6},
    {"name": "Battery Replacement", "slug": "battery",
     "description": "Battery testing and replacement", "icon": "battery",
     "is_popular": True, "display_order": 7},
    {"name": "Brake Service", "slug": "brake-service",
     "description": "Brake pad replacement, rotor resurfacing", "icon": "octagon",
     "is_popular": False, "display_order": 8},
]


def upgrade() -> None:
    conn = op.get_bind()
    for service in SERVICES:
        conn.execute(
            sa.text(
                "INSERT INTO services (id, name, slug, description, icon, is_popular, display_order) "
                "VALUES (:id, :name, :slug, :description, :icon, :is_popular, :display_order) "
                "ON CONFLICT (slug) DO NOTHING"
            ),
            {"id": uuid4(), **service},
        )


def downgrade() -> None:
    conn = op.get_bind()
    for service in SERVICES:
        conn.execute(sa.text("DELETE FROM services WHERE slug = :slug"), {"slug": service["slug"]})
