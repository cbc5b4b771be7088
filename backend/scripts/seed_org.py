#!/usr/bin/env python
"""Seed script for local development: create an organization and mint a token.

Creates the organization if no organization with ORG_SLUG exists yet, then
prints an access token for it. Tokens are normally issued by the identity
provider; this is for trying the API locally.

Usage:
    ORG_SLUG=sunrise-solar python backend/scripts/seed_org.py

Environment Variables:
    DATABASE_URL: PostgreSQL connection string
    JWT_SECRET: Signing key shared with the API
    ORG_SLUG: Organization slug (required)
    ORG_NAME: Organization name (default: derived from the slug)
    TOKEN_ROLE: VIEWER | SALES | MANAGER | ADMIN (default: ADMIN)
    TOKEN_SUBJECT: Actor id written to audit records (default: local-admin)
"""

import os
import sys
from pathlib import Path

# Add backend/src to Python path
backend_src = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(backend_src))

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from solardesk.auth.jwt import create_access_token
from solardesk.auth.roles import UserRole
from solardesk.database import SessionLocal
from solardesk.models import Organization


def main():
    """Create the organization (if needed) and print a token."""
    slug = os.getenv("ORG_SLUG")
    if not slug:
        print("ERROR: ORG_SLUG environment variable is required")
        print("Example: ORG_SLUG=sunrise-solar python seed_org.py")
        sys.exit(1)

    role_name = os.getenv("TOKEN_ROLE", "ADMIN").upper()
    try:
        role = UserRole(role_name)
    except ValueError:
        print(f"ERROR: Unknown TOKEN_ROLE: {role_name}")
        sys.exit(1)

    name = os.getenv("ORG_NAME", slug.replace("-", " ").title())
    subject = os.getenv("TOKEN_SUBJECT", "local-admin")

    session = SessionLocal()
    try:
        org = session.execute(
            select(Organization).where(Organization.slug == slug)
        ).scalar_one_or_none()

        if org is None:
            try:
                org = Organization(name=name, slug=slug)
            except ValueError as e:
                print(f"ERROR: {e}")
                sys.exit(1)
            session.add(org)
            session.commit()
            print("SUCCESS: Organization created")
        else:
            print("Organization already exists")

        print(f"  ID:   {org.id}")
        print(f"  Slug: {org.slug}")
        print(f"  Name: {org.name}")
        print()
        print(f"{role.value} token for {subject}:")
        print(create_access_token(user_id=subject, org_id=org.id, role=role.value))

    except SQLAlchemyError as e:
        session.rollback()
        print(f"ERROR: Failed to seed organization: {e}")
        sys.exit(1)

    finally:
        session.close()


if __name__ == "__main__":
    main()
