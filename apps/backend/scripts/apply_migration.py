#!/usr/bin/env python3
"""
Apply the scraped_jobs schema migration.
This script applies the migration with progress reporting and verification.
"""
import sys
import argparse
from pathlib import Path

from dotenv import load_dotenv

# Load from the backend directory when run from elsewhere
BACKEND_DIR = Path(__file__).parent.parent
load_dotenv(BACKEND_DIR / ".env")
load_dotenv()

# Add backend to path
sys.path.insert(0, str(BACKEND_DIR))

import psycopg2  # noqa: E402
from psycopg2.extras import RealDictCursor  # noqa: E402

from app.db_config import get_db_connection  # noqa: E402

MIGRATION_FILE = BACKEND_DIR / "migrations" / "001_scraped_jobs.sql"
EXPECTED_INDEXES = ["idx_scraped_jobs_fts", "idx_scraped_jobs_source_active"]


def check_table_exists(cursor, table_name):
    """Check if a table exists"""
    cursor.execute("""
        SELECT EXISTS (
            SELECT FROM information_schema.tables
            WHERE table_schema = 'public'
            AND table_name = %s
        ) as exists
    """, (table_name,))
    return cursor.fetchone()["exists"]


def check_index_exists(cursor, index_name):
    """Check if an index exists"""
    cursor.execute("""
        SELECT EXISTS (
            SELECT FROM pg_indexes
            WHERE schemaname = 'public'
            AND indexname = %s
        ) as exists
    """, (index_name,))
    return cursor.fetchone()["exists"]


def main():
    parser = argparse.ArgumentParser(description="Apply scraped_jobs migration")
    parser.add_argument(
        "--db-url",
        type=str,
        help="PostgreSQL connection string (default: DATABASE_URL)"
    )
    args = parser.parse_args()

    print("=" * 70)
    print("Scraped jobs - Migration")
    print("=" * 70)
    print()

    print("Step 1: Connecting to database...")
    try:
        conn = get_db_connection(args.db_url)
    except (psycopg2.Error, RuntimeError) as e:
        print(f"❌ Failed to connect: {e}")
        sys.exit(1)
    cursor = conn.cursor(cursor_factory=RealDictCursor)
    print("✅ Connected successfully")
    print()

    print(f"Step 2: Applying {MIGRATION_FILE.name}...")
    try:
        cursor.execute(MIGRATION_FILE.read_text())
        conn.commit()
    except psycopg2.Error as e:
        conn.rollback()
        print(f"❌ Migration failed: {e}")
        cursor.close()
        conn.close()
        sys.exit(1)
    print("✅ All changes committed")
    print()

    print("Step 3: Verifying migration...")
    verification_passed = True

    if check_table_exists(cursor, 'scraped_jobs'):
        print("✅ scraped_jobs table exists")
    else:
        print("❌ scraped_jobs table missing")
        verification_passed = False

    for index_name in EXPECTED_INDEXES:
        if check_index_exists(cursor, index_name):
            print(f"✅ {index_name} index exists")
        else:
            print(f"❌ {index_name} index missing")
            verification_passed = False

    print()
    print("=" * 70)
    if verification_passed:
        print("✅ Migration completed successfully!")
    else:
        print("⚠️  Migration completed with warnings")
    print("=" * 70)

    cursor.close()
    conn.close()
    if not verification_passed:
        sys.exit(1)


if __name__ == "__main__":
    main()
