"""Utility script to prepare the configured authorization database."""
from __future__ import annotations

import argparse
import os
import sys
from urllib.parse import urlsplit, urlunsplit

import psycopg
from psycopg import sql

from orion_mint.core.settings import settings
from orion_mint.db.session import build_engine, create_tables, drop_tables


def normalize_to_psycopg(uri: str) -> str:
    """Return a Postgres URI suitable for psycopg.connect().

    Strips quotes and whitespace and converts SQLAlchemy schemes
    (``postgresql+psycopg``) to plain ``postgresql``.
    """
    uri = (uri or "").strip().strip("'\"")
    if not uri:
        raise ValueError("DATABASE_URL is empty")

    parts = urlsplit(uri)
    scheme = parts.scheme
    if scheme.startswith("postgresql+"):
        scheme = "postgresql"
    if scheme != "postgresql":
        raise ValueError(f"Not a PostgreSQL URL: {uri!r}")
    return urlunsplit((scheme, parts.netloc, parts.path, parts.query, parts.fragment))


def maintenance_url(db_url: str) -> tuple[str, str]:
    """Return ``(admin_url, target_db)`` pointing at the maintenance database."""
    parts = urlsplit(normalize_to_psycopg(db_url))
    target_db = parts.path.lstrip("/") or "postgres"
    if parts.netloc:
        return urlunsplit(("postgresql", parts.netloc, "/postgres", parts.query, "")), target_db
    return "postgresql:///postgres", target_db


def ensure_database_exists(db_url: str) -> bool:
    """Create the configured Postgres database if it is missing.

    Returns:
        True when the database was created.
    """
    admin_url, target_db = maintenance_url(db_url)
    if os.getenv("ENSURE_DB_DEBUG") == "1":
        print(f"[ensure_db] admin_url={admin_url!r}, target_db={target_db!r}")

    with psycopg.connect(admin_url, autocommit=True) as conn, conn.cursor() as cur:
        cur.execute("SELECT 1 FROM pg_database WHERE datname = %s", (target_db,))
        if cur.fetchone() is not None:
            print(f"[ensure_db] database {target_db} already exists")
            return False
        cur.execute(sql.SQL("CREATE DATABASE {}").format(sql.Identifier(target_db)))
    print(f"[ensure_db] created database {target_db}")
    return True


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Ensure the authorization database exists")
    parser.add_argument(
        "--url",
        default=None,
        help="Override database URL (defaults to effective settings URL)",
    )
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create the authorization tables without running migrations.",
    )
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Drop the authorization tables before creating them.",
    )
    args = parser.parse_args(argv)

    url = args.url or settings.effective_database_url
    try:
        if url.startswith("postgresql"):
            ensure_database_exists(url)
        else:
            print(f"[ensure_db] {url.split(':', 1)[0]} database needs no server-side setup")
        if args.reset or args.create_tables:
            engine = build_engine(url)
            if args.reset:
                drop_tables(engine)
                print("[ensure_db] dropped authorization tables")
            create_tables(engine)
            print("[ensure_db] created authorization tables")
    except (ValueError, psycopg.Error) as exc:
        print(f"[ensure_db] ERROR: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
