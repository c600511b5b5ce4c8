"""
Grant or revoke the admin role on a user's profile document.
Run: python -m scripts.grant_admin <uid> [--revoke]   (from the project root)
"""
import argparse
import asyncio
import os
import sys

# Add parent so we can import from the project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import settings
from services import paths
from services.accounts import ADMIN_ROLE, set_role
from services.backends import build_store


async def grant(uid: str, revoke: bool) -> int:
    store = build_store(settings)
    await store.init()
    try:
        if await store.get(paths.user_profile_path(settings.app_id, uid)) is None:
            print(f"No profile for user {uid}")
            return 1
        await set_role(store, settings.app_id, uid, None if revoke else ADMIN_ROLE)
    finally:
        await store.close()
    print(f"{'Revoked' if revoke else 'Granted'} admin role for {uid}")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("uid")
    parser.add_argument("--revoke", action="store_true")
    args = parser.parse_args()
    sys.exit(asyncio.run(grant(args.uid, args.revoke)))
