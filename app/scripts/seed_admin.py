"""
Seed Admin Script
Promotes an existing profile (the user must have signed up first) to an
active administrator and records the setup in admin_logs.

Usage: python app/scripts/seed_admin.py <email>
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from app.config.access_config import ProfileStatus, Role
from app.database.supabase_client import SupabaseClient, get_service_supabase
from supabase import Client
from typing import Optional, Dict, Any
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

ADMIN_NAME = "System Administrator"
ADMIN_BIO = "Application administrator with full access to all features."


def seed_admin(supabase: Client, email: str) -> Optional[Dict[str, Any]]:
    """Make the profile with this email an active admin; None if no such profile"""
    result = supabase.table("profiles")\
        .update({
            "role": Role.ADMIN.value,
            "status": ProfileStatus.ACTIVE.value,
            "full_name": ADMIN_NAME,
            "bio": ADMIN_BIO,
            "suspended_until": None,
            "suspension_reason": None,
        })\
        .eq("email", email)\
        .execute()

    if not result.data:
        logger.error(f"No profile found with email {email}. The user must sign up first.")
        return None

    profile = result.data[0]
    logger.info(f"{email} is now an admin user")

    try:
        supabase.table("admin_logs").insert({
            "admin_id": profile["user_id"],
            "action": "system_setup",
            "details": {"message": "Initial system setup completed", "version": "1.0.0"},
        }).execute()
    except Exception as e:
        logger.warning(f"Could not create admin log: {e}")

    return profile


def main():
    if len(sys.argv) < 2:
        logger.error("Usage: python app/scripts/seed_admin.py <email>")
        sys.exit(1)
    if not SupabaseClient.has_service_role():
        logger.error("SUPABASE_SERVICE_ROLE_KEY must be set")
        sys.exit(1)

    try:
        if seed_admin(get_service_supabase(), sys.argv[1]) is None:
            sys.exit(1)
    except Exception as e:
        logger.error(f"Seeding failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
