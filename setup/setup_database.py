#!/usr/bin/env python3
"""
Database setup script for the Hot Potato PR Dashboard.

Creates the key/value table that holds the dashboard configuration and
the user role list, using a direct PostgreSQL connection.

Usage:
    python setup/setup_database.py           # Create schema
    python setup/setup_database.py --verify  # Verify existing schema
    python setup/setup_database.py --drop    # Drop and recreate (DANGEROUS)
    python setup/setup_database.py --reset   # Delete stored documents (config, roles)
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import psycopg2

from storage.config_store import CONFIG_KEY
from storage.role_store import ROLES_KEY
from storage.supabase_client import SupabaseClient
from utils.config_loader import load_config
from utils.logger import setup_logger

logger = setup_logger(name=__name__)

TABLE_NAME = SupabaseClient.table_name

CREATE_TABLE_SQL = f"""
CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
    key TEXT PRIMARY KEY,
    value JSONB NOT NULL,
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
"""

DROP_TABLE_SQL = f"DROP TABLE IF EXISTS {TABLE_NAME};"

KNOWN_KEYS = [CONFIG_KEY, ROLES_KEY]


def get_database_url(config) -> str:
    """Get the PostgreSQL URL from DATABASE_URL, or exit with instructions."""
    if config.credentials.database_url:
        return config.credentials.database_url

    logger.error("DATABASE_URL not found in .env file")
    logger.error("\nTo get your DATABASE_URL:")
    logger.error("1. Go to Supabase Dashboard → Project Settings → Database")
    logger.error("2. Find 'Connection string' under 'Connection pooling'")
    logger.error("3. Copy the 'URI' connection string")
    logger.error("4. Add to .env file: DATABASE_URL=postgresql://...")
    sys.exit(1)


def create_connection(database_url: str):
    """Create a PostgreSQL database connection."""
    try:
        conn = psycopg2.connect(database_url)
        logger.info("✓ Connected to PostgreSQL database")
        return conn
    except Exception as e:
        logger.error(f"✗ Failed to connect to database: {e}")
        logger.error("\nMake sure DATABASE_URL is correct and your IP is allowed in Supabase")
        sys.exit(1)


def execute_sql(conn, sql_statement: str, description: str) -> bool:
    """Execute a SQL statement."""
    try:
        cursor = conn.cursor()
        cursor.execute(sql_statement)
        conn.commit()
        cursor.close()
        logger.info(f"✓ {description}")
        return True
    except Exception as e:
        logger.error(f"✗ {description} failed: {e}")
        conn.rollback()
        return False


def verify_schema(conn) -> bool:
    """Verify that the table exists and report which documents are stored."""
    try:
        cursor = conn.cursor()
        cursor.execute(
            """
            SELECT EXISTS (
                SELECT FROM information_schema.tables
                WHERE table_name = %s
            );
            """,
            (TABLE_NAME,),
        )
        if not cursor.fetchone()[0]:
            logger.error(f"✗ Table '{TABLE_NAME}' does not exist")
            cursor.close()
            return False
        logger.info(f"✓ Table '{TABLE_NAME}' exists")

        cursor.execute(f"SELECT key FROM {TABLE_NAME};")
        stored = {row[0] for row in cursor.fetchall()}
        for key in KNOWN_KEYS:
            if key in stored:
                logger.info(f"✓ Document '{key}' present")
            else:
                # Created with defaults on first API access
                logger.warning(f"⚠ Document '{key}' not created yet")

        cursor.close()
        return True

    except Exception as e:
        logger.error(f"✗ Schema verification failed: {e}")
        return False


def create_schema(conn) -> bool:
    logger.info("\n" + "="*80)
    logger.info("CREATING SCHEMA")
    logger.info("="*80 + "\n")

    if not execute_sql(conn, CREATE_TABLE_SQL, f"Created table '{TABLE_NAME}'"):
        return False

    logger.info("\n✓ Database schema created successfully!")
    return True


def drop_schema(conn) -> bool:
    """Drop the existing table (DANGEROUS)."""
    logger.warning("\n" + "="*80)
    logger.warning("⚠️  WARNING: DROPPING EXISTING SCHEMA")
    logger.warning("="*80)
    logger.warning("This will DELETE the dashboard configuration and all user roles!")

    response = input("\nType 'yes' to confirm: ")
    if response.lower() != 'yes':
        logger.info("Aborted.")
        return False

    return execute_sql(conn, DROP_TABLE_SQL, f"Dropped table '{TABLE_NAME}'")


def reset_documents(store, keys=KNOWN_KEYS) -> bool:
    """
    Delete the stored documents through the Supabase API.

    The API recreates the default configuration on next access and the
    role list is migrated again from USER_ROLES/ALLOWED_USERS.
    """
    logger.warning(f"This will DELETE these documents: {', '.join(keys)}")

    response = input("\nType 'yes' to confirm: ")
    if response.lower() != 'yes':
        logger.info("Aborted.")
        return False

    for key in keys:
        try:
            store.delete(key)
            logger.info(f"✓ Deleted document '{key}'")
        except Exception as e:
            logger.error(f"✗ Failed to delete '{key}': {e}")
            return False
    return True


def main():
    parser = argparse.ArgumentParser(
        description="Set up database schema for the Hot Potato PR Dashboard"
    )
    parser.add_argument(
        "--verify",
        action="store_true",
        help="Verify existing schema without creating"
    )
    parser.add_argument(
        "--drop",
        action="store_true",
        help="Drop and recreate the table (DANGEROUS - deletes config and roles)"
    )
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Delete the stored config and role documents, keeping the table"
    )

    args = parser.parse_args()

    try:
        config = load_config()
        logger.info("✓ Configuration loaded")
    except Exception as e:
        logger.error(f"✗ Failed to load configuration: {e}")
        logger.error("Make sure .env file exists with required variables")
        sys.exit(1)

    if args.reset:
        store = SupabaseClient(config.credentials.supabase_url, config.credentials.supabase_key)
        sys.exit(0 if reset_documents(store) else 1)

    conn = create_connection(get_database_url(config))

    try:
        if args.verify:
            logger.info("\n" + "="*80)
            logger.info("VERIFYING SCHEMA")
            logger.info("="*80 + "\n")

            if verify_schema(conn):
                logger.info("\n✓ Schema verification successful")
                sys.exit(0)
            logger.error("\n✗ Schema verification failed")
            sys.exit(1)

        if args.drop and not drop_schema(conn):
            sys.exit(1)

        if create_schema(conn):
            logger.info("\nNext: python setup/setup_database.py --verify")
            sys.exit(0)
        logger.error("\n✗ Schema creation failed")
        sys.exit(1)

    finally:
        conn.close()
        logger.info("\n✓ Database connection closed")


if __name__ == "__main__":
    main()
