#!/usr/bin/env python3
"""
Script to inspect a user's interests, their expansion and current suggestions.
"""

import asyncio
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.db import AsyncSessionLocal
from services.directory import UserDirectory
from services.errors import Failure
from services.interests import get_expander
from services.notifications import NotificationCenter
from services.suggestions import LocationSuggestionWorkflow


async def _no_delivery(notification_id: int) -> None:
    """Read-only inspection never queues deliveries."""


async def check_user_interests(user_id: int) -> None:
    expander = get_expander()

    async with AsyncSessionLocal() as db:
        profile = await UserDirectory(db).resolve(user_id)
        if profile is None:
            print(f"User {user_id} not found or inactive")
            return

        print(f"User: {profile.username} (ID: {profile.id}), region: {profile.region or '-'}")
        print(f"Declared interests: {', '.join(profile.interests) or '-'}")

        invalid = [token for token in profile.interests if not expander.is_valid(token)]
        if invalid:
            print(f"Not in taxonomy: {', '.join(invalid)}")

        print(f"Expanded ({len(expander.expand(profile.interests))}): {', '.join(expander.expand(profile.interests))}")
        print()

        workflow = LocationSuggestionWorkflow(db, NotificationCenter(db, enqueue=_no_delivery), expander=expander)
        page = await workflow.get_suggestions(user_id, page=1, page_size=10)
        if isinstance(page, Failure):
            print(f"Suggestions unavailable: {page.message}")
            return

        print(f"Suggestions (top {len(page.items)} of {page.total_count}):")
        for item in page.items:
            location = item.location
            print(f"   • [{location.id}] {location.name} ({location.category}) matched={item.matched_tokens}")


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("Usage: python scripts/check_user_interests.py <user_id>")
        sys.exit(1)

    asyncio.run(check_user_interests(int(sys.argv[1])))
