#!/usr/bin/env python3
"""
Create the Poolbook tables in Snowflake and optionally seed members.

The member file is a CSV export from the membership system with the
columns: member_id, full_name, category, phone, email, status,
last_payment_date. Category labels are the membership system's own
(Administrador, Principal, Dependiente, Individual).

Usage:
    python scripts/init_schema.py
    python scripts/init_schema.py --members members.csv
    python scripts/init_schema.py --members members.csv --dry-run

Requires:
    - .env file with Snowflake credentials
"""

import csv
import sys
from pathlib import Path

# Add project root to path so we can import our modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from poolbook.config.settings import get_settings
from poolbook.core.scheduling.models import MemberProfile
from poolbook.infrastructure.snowflake.client import create_snowflake_connection
from poolbook.infrastructure.snowflake.repositories.pool import (
    PoolRepository,
    SnowflakeConfig,
    from_db_category,
)


def read_members(filepath: str) -> list[MemberProfile]:
    """Parse the membership CSV export, skipping rows without an id."""
    members = []
    with open(filepath, 'r', encoding='utf-8', newline='') as f:
        for row in csv.DictReader(f):
            member_id = (row.get('member_id') or '').strip()
            if not member_id:
                continue
            members.append(MemberProfile(
                id=member_id,
                name=(row.get('full_name') or '').strip(),
                role=from_db_category(row.get('category')),
                phone=(row.get('phone') or '').strip() or None,
                email=(row.get('email') or '').strip() or None,
                status=(row.get('status') or '').strip() or None,
                last_payment_date=(row.get('last_payment_date') or '').strip() or None,
            ))
    return members


def main():
    import argparse

    parser = argparse.ArgumentParser(description='Create Poolbook tables in Snowflake')
    parser.add_argument('--members', help='Membership CSV export to load')
    parser.add_argument('--dry-run', action='store_true', help='Parse only, don\'t connect')
    args = parser.parse_args()

    members: list[MemberProfile] = []
    if args.members:
        if not Path(args.members).exists():
            print(f"ERROR: Cannot find {args.members}")
            sys.exit(1)
        members = read_members(args.members)
        print(f"Found {len(members)} members in {args.members}")

    if args.dry_run:
        print("\n=== DRY RUN - Nothing will be written ===\n")
        for member in members:
            print(f"Would save: {member.id} {member.name} ({member.role.value})")
        sys.exit(0)

    settings = get_settings()
    missing = settings.validate_required_fields()
    if missing and not settings.snowflake_mock_mode:
        print(f"ERROR: Missing configuration: {', '.join(missing)}")
        sys.exit(1)

    config = SnowflakeConfig(
        account=settings.snowflake_account,
        user=settings.snowflake_user,
        password=settings.snowflake_password or None,
        private_key_path=settings.snowflake_private_key_path,
        private_key_base64=settings.snowflake_private_key_base64,
        database=settings.snowflake_database,
        schema=settings.snowflake_schema,
        warehouse=settings.snowflake_warehouse,
        role=settings.snowflake_role,
    )

    print(f"Using database {config.database}, schema {config.schema}")
    errors = 0
    with create_snowflake_connection(config=config, mock_mode=settings.snowflake_mock_mode) as conn:
        repository = PoolRepository(conn)
        repository.ensure_schema()
        print("[OK] Tables ready")

        for member in members:
            try:
                repository.save_member(member)
                print(f"[OK] Saved: {member.id}")
            except Exception as e:
                errors += 1
                print(f"[ERR] Error saving {member.id}: {e}")

    print("\n=== Done ===")
    print(f"Members saved: {len(members) - errors}")
    print(f"Errors: {errors}")

    sys.exit(0 if errors == 0 else 1)


if __name__ == '__main__':
    main()
