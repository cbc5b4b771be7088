"""Organization model - Root entity for multi-tenant isolation"""

import re
import uuid

from sqlalchemy import Column, Text, Uuid
from sqlalchemy.orm import validates

from .base import Base, TimestampMixin


class Organization(Base, TimestampMixin):
    """
    Organization model - Root entity for multi-tenant system.

    Each organization represents a distinct tenant with isolated data.
    All tenant-owned tables reference organizations.id via foreign key.
    This table itself is global and is not filtered by the isolation layer.
    """
    __tablename__ = "organizations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)
    slug = Column(Text, nullable=False, unique=True)

    @validates('slug')
    def validate_slug(self, key, value):
        """
        Ensure slug is URL-friendly and follows naming conventions.

        Pattern: ^[a-z0-9-]+$
        Valid: sunrise-solar, test-org-123
        Invalid: Sunrise_Solar, sunrise solar, sunrise.solar

        Raises:
            ValueError: If slug doesn't match pattern or length requirements
        """
        if not re.match(r'^[a-z0-9-]+$', value):
            raise ValueError(
                "Slug must contain only lowercase letters, numbers, and hyphens"
            )
        if len(value) < 2 or len(value) > 100:
            raise ValueError("Slug must be between 2 and 100 characters")
        return value

    @validates('name')
    def validate_name(self, key, value):
        """
        Ensure organization name is not empty and within length limits.

        Raises:
            ValueError: If name is empty/whitespace or exceeds 200 characters
        """
        if not value or len(value.strip()) == 0:
            raise ValueError("Organization name cannot be empty")
        if len(value) > 200:
            raise ValueError("Organization name cannot exceed 200 characters")
        return value.strip()

    def __repr__(self):
        return f"<Organization(id={self.id}, slug='{self.slug}', name='{self.name}')>"
