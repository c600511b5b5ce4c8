"""
Repair loan applications whose user copy and admin copy have drifted apart.
Run: python -m scripts.reconcile_applications   (from the project root)
"""
import asyncio
import os
import sys

# Add parent so we can import from the project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import settings
from services.applications import ApplicationRecordManager
from services.backends import build_store


async def reconcile() -> int:
    store = build_store(settings)
    await store.init()
    try:
        report = await ApplicationRecordManager(store, settings.app_id).reconcile()
    finally:
        await store.close()
    print(f"Checked {report.checked} applications")
    for application_id in report.restored_user_copies:
        print(f"Restored user copy: {application_id}")
    for application_id in report.restored_global_copies:
        print(f"Restored admin copy: {application_id}")
    for application_id in report.resynced:
        print(f"Resynced status: {application_id}")
    for application_id in report.orphaned:
        print(f"No owning user, left as is: {application_id}")
    print("Reconcile complete.")
    return 1 if report.orphaned else 0


if __name__ == "__main__":
    sys.exit(asyncio.run(reconcile()))
