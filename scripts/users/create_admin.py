"""Create a back-office admin account.

Usage:
    ENV_FILE=.env.prod python scripts/users/create_admin.py --email owner@example.com
"""

import argparse
import asyncio
import getpass
import os
import sys
from pathlib import Path

# Add project root to path to import libs
sys.path.append(os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from dotenv import load_dotenv

# MUST be done before importing libs that use get_settings()
project_root = Path(__file__).resolve().parents[2]
env_file = os.environ.get("ENV_FILE", ".env")
load_dotenv(project_root / env_file, override=True)

from libs.common.errors import DuplicateEntry
from libs.db.config import AsyncSessionLocal
from services.storefront_service.services.admin_auth import create_admin_user

MIN_PASSWORD_LENGTH = 8


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create a storefront admin user")
    parser.add_argument("--email", required=True)
    parser.add_argument("--full-name", default=None)
    parser.add_argument(
        "--password",
        default=None,
        help="Prompted for when omitted (recommended)",
    )
    return parser.parse_args()


async def main() -> int:
    args = parse_args()
    password = args.password or getpass.getpass("Password: ")
    if len(password) < MIN_PASSWORD_LENGTH:
        print(f"❌ Password must be at least {MIN_PASSWORD_LENGTH} characters.")
        return 1

    print(f"Creating admin {args.email}...")
    async with AsyncSessionLocal() as session:
        try:
            admin = await create_admin_user(
                session, email=args.email, password=password, full_name=args.full_name
            )
        except DuplicateEntry:
            print(f"⚠️ An admin with email {args.email} already exists.")
            return 1

    print(f"✅ Admin created: {admin.email} ({admin.id})")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
