"""DDL for the vault tables read by ``SqlVaultRepository``."""

from __future__ import annotations

import logging
import os

from sqlalchemy import create_engine, text
from sqlalchemy.engine import make_url

logger = logging.getLogger(__name__)

SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS folder (
        folder_id VARCHAR(64) PRIMARY KEY,
        workspace_id VARCHAR(64) NOT NULL,
        parent_folder_id VARCHAR(64),
        name VARCHAR(255) NOT NULL,
        deleted_at BIGINT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS doc (
        doc_id VARCHAR(64) PRIMARY KEY,
        workspace_id VARCHAR(64) NOT NULL,
        folder_id VARCHAR(64),
        title VARCHAR(255) NOT NULL,
        body TEXT,
        updated_at BIGINT NOT NULL DEFAULT 0,
        sort_index INTEGER NOT NULL DEFAULT 0,
        deleted_at BIGINT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS tag (
        doc_id VARCHAR(64) NOT NULL,
        namespace VARCHAR(64) NOT NULL,
        value VARCHAR(255) NOT NULL,
        PRIMARY KEY (doc_id, namespace, value)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS edge (
        from_doc_id VARCHAR(64) NOT NULL,
        to_doc_id VARCHAR(64) NOT NULL,
        link_text VARCHAR(255) NOT NULL DEFAULT '',
        PRIMARY KEY (from_doc_id, to_doc_id, link_text)
    )
    """,
    "CREATE INDEX IF NOT EXISTS ix_doc_workspace ON doc (workspace_id)",
    "CREATE INDEX IF NOT EXISTS ix_tag_namespace_value ON tag (namespace, value)",
    "CREATE INDEX IF NOT EXISTS ix_edge_to_doc ON edge (to_doc_id)",
)


def create_schema(engine) -> None:
    with engine.begin() as conn:
        for statement in SCHEMA_STATEMENTS:
            conn.execute(text(statement))


def resolve_database_url(explicit_url: str | None = None) -> str:
    url = (explicit_url or os.getenv("PREP_DATABASE_URL") or "").strip()
    if not url:
        raise ValueError("No database configured. Set PREP_DATABASE_URL or pass --database-url.")
    return url


def initialize_database(database_url: str | None = None) -> dict:
    """Create the vault tables on the configured database; safe to re-run."""
    url = resolve_database_url(database_url)
    engine = create_engine(url, echo=False, future=True)
    try:
        create_schema(engine)
    finally:
        engine.dispose()
    rendered = make_url(url).render_as_string(hide_password=True)
    logger.info("Applied %s schema statement(s) to %s", len(SCHEMA_STATEMENTS), rendered)
    return {"databaseUrl": rendered, "statements": len(SCHEMA_STATEMENTS)}
