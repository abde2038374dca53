"""
Cleanup Orphaned Users Script
Deletes auth users that have no row in the profiles table.

Usage: python app/scripts/cleanup_orphaned_users.py [--dry-run]
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from app.database.supabase_client import SupabaseClient, get_service_supabase
from supabase import Client
from typing import List
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

PAGE_SIZE = 1000


def list_auth_users(supabase: Client) -> list:
    users = []
    page = 1
    while True:
        batch = supabase.auth.admin.list_users(page=page, per_page=PAGE_SIZE)
        users.extend(batch)
        if len(batch) < PAGE_SIZE:
            return users
        page += 1


def find_orphaned_users(supabase: Client) -> list:
    profiles = supabase.table("profiles").select("user_id").execute()
    profile_user_ids = {p["user_id"] for p in profiles.data or []}
    return [u for u in list_auth_users(supabase) if u.id not in profile_user_ids]


def cleanup_orphaned_users(supabase: Client, dry_run: bool = False) -> List[str]:
    """Delete orphaned auth users; returns the ids that were (or would be) deleted"""
    orphaned = find_orphaned_users(supabase)
    logger.info(f"Found {len(orphaned)} orphaned users")

    deleted = []
    for user in orphaned:
        if dry_run:
            logger.info(f"Would delete {user.email} ({user.id})")
            deleted.append(user.id)
            continue
        try:
            supabase.auth.admin.delete_user(user.id)
            deleted.append(user.id)
            logger.info(f"Deleted {user.email} ({user.id})")
        except Exception as e:
            logger.error(f"Failed to delete {user.email} ({user.id}): {e}")
    return deleted


def main():
    parser = argparse.ArgumentParser(description="Delete auth users without a profile")
    parser.add_argument("--dry-run", action="store_true", help="only list the users that would be deleted")
    args = parser.parse_args()

    if not SupabaseClient.has_service_role():
        logger.error("SUPABASE_SERVICE_ROLE_KEY must be set")
        sys.exit(1)

    try:
        deleted = cleanup_orphaned_users(get_service_supabase(), dry_run=args.dry_run)
        logger.info(f"Cleanup completed: {len(deleted)} users {'to delete' if args.dry_run else 'deleted'}")
    except Exception as e:
        logger.error(f"Cleanup failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
