"""Database initialization and schema management."""

import logging
from typing import Any, Dict

from psycopg.errors import DatabaseError

from .connection import get_connection

logger = logging.getLogger(__name__)


SCHEMA_SQL = """
CREATE EXTENSION IF NOT EXISTS vector;
CREATE EXTENSION IF NOT EXISTS pgcrypto;

-- Captures table
CREATE TABLE IF NOT EXISTS captures (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    url TEXT NOT NULL,
    title TEXT,
    selected_text TEXT,
    favicon_url TEXT,
    content TEXT,
    summary TEXT,
    display_title TEXT,
    category TEXT,
    tags TEXT[],
    quality_score INTEGER CHECK (quality_score BETWEEN 1 AND 10),
    actionability_score INTEGER CHECK (actionability_score BETWEEN 1 AND 10),
    key_takeaways TEXT[],
    action_items TEXT[],
    source_platform TEXT,
    author_name TEXT,
    image_url TEXT,
    embedding vector(1536),
    notion_synced BOOLEAN DEFAULT FALSE,
    notion_page_id TEXT,
    notion_synced_at TIMESTAMPTZ,
    status TEXT NOT NULL DEFAULT 'pending'
        CHECK (status IN ('pending', 'processing', 'completed', 'error')),
    error_message TEXT,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    processed_at TIMESTAMPTZ
);

-- Usage ledger
CREATE TABLE IF NOT EXISTS usage (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    capture_id UUID REFERENCES captures(id) ON DELETE SET NULL,
    service TEXT NOT NULL,
    model TEXT NOT NULL,
    operation TEXT NOT NULL,
    input_tokens INTEGER NOT NULL DEFAULT 0,
    output_tokens INTEGER NOT NULL DEFAULT 0,
    total_tokens INTEGER GENERATED ALWAYS AS (input_tokens + output_tokens) STORED,
    cost_cents INTEGER NOT NULL DEFAULT 0,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

-- Categories
CREATE TABLE IF NOT EXISTS categories (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    name TEXT NOT NULL UNIQUE,
    description TEXT,
    color TEXT DEFAULT '#667eea',
    is_default BOOLEAN DEFAULT FALSE,
    sort_order INTEGER DEFAULT 0,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

INSERT INTO categories (name, description, color, is_default, sort_order) VALUES
    ('learning', 'Tutorials, courses, documentation, how-to guides', '#10b981', TRUE, 1),
    ('work', 'Professional tools, productivity, career-related', '#3b82f6', TRUE, 2),
    ('project', 'Code repos, project ideas, side projects', '#8b5cf6', TRUE, 3),
    ('news', 'Current events, announcements, blog posts', '#f59e0b', TRUE, 4),
    ('reference', 'APIs, specs, reference materials, wikis', '#6b7280', TRUE, 5)
ON CONFLICT (name) DO NOTHING;

-- Settings (single row)
CREATE TABLE IF NOT EXISTS settings (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    ai_model TEXT NOT NULL DEFAULT 'claude-haiku',
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

INSERT INTO settings (ai_model)
SELECT 'claude-haiku' WHERE NOT EXISTS (SELECT 1 FROM settings);

-- Indexes
CREATE INDEX IF NOT EXISTS captures_url_idx ON captures(url);
CREATE INDEX IF NOT EXISTS captures_status_idx ON captures(status);
CREATE INDEX IF NOT EXISTS captures_category_idx ON captures(category);
CREATE INDEX IF NOT EXISTS captures_created_at_idx ON captures(created_at DESC);
CREATE INDEX IF NOT EXISTS captures_author_idx ON captures(author_name);
CREATE INDEX IF NOT EXISTS captures_embedding_idx ON captures
    USING ivfflat (embedding vector_cosine_ops) WITH (lists = 100);
CREATE INDEX IF NOT EXISTS usage_capture_id_idx ON usage(capture_id);
CREATE INDEX IF NOT EXISTS usage_created_at_idx ON usage(created_at DESC);

-- Update trigger function
CREATE OR REPLACE FUNCTION update_updated_at_column()
RETURNS TRIGGER AS $$
BEGIN
    NEW.updated_at = NOW();
    RETURN NEW;
END;
$$ language 'plpgsql';

DROP TRIGGER IF EXISTS update_captures_updated_at ON captures;
CREATE TRIGGER update_captures_updated_at BEFORE UPDATE ON captures
    FOR EACH ROW EXECUTE FUNCTION update_updated_at_column();

DROP TRIGGER IF EXISTS update_categories_updated_at ON categories;
CREATE TRIGGER update_categories_updated_at BEFORE UPDATE ON categories
    FOR EACH ROW EXECUTE FUNCTION update_updated_at_column();

-- Semantic search
CREATE OR REPLACE FUNCTION search_captures(
    query_embedding vector(1536),
    match_threshold FLOAT DEFAULT 0.7,
    match_count INT DEFAULT 10
)
RETURNS TABLE (
    id UUID,
    url TEXT,
    title TEXT,
    display_title TEXT,
    summary TEXT,
    category TEXT,
    tags TEXT[],
    quality_score INTEGER,
    created_at TIMESTAMPTZ,
    similarity FLOAT
)
LANGUAGE plpgsql
AS $$
BEGIN
    RETURN QUERY
    SELECT
        c.id, c.url, c.title, c.display_title, c.summary, c.category, c.tags,
        c.quality_score, c.created_at,
        1 - (c.embedding <=> query_embedding) AS similarity
    FROM captures c
    WHERE c.embedding IS NOT NULL
      AND 1 - (c.embedding <=> query_embedding) > match_threshold
    ORDER BY c.embedding <=> query_embedding
    LIMIT match_count;
END;
$$;
"""


def validate_connection(config: Dict[str, Any]) -> bool:
    """Validate database connection."""
    try:
        with get_connection(config) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1 AS ok")
                result = cur.fetchone()
                return result is not None and result["ok"] == 1
    except Exception as e:
        logger.error("Database connection failed: %s", e)
        return False


def init_database(config: Dict[str, Any]) -> None:
    """Initialize database schema."""
    try:
        with get_connection(config) as conn:
            with conn.cursor() as cur:
                cur.execute(SCHEMA_SQL)
                conn.commit()
                logger.info("Database schema initialized")
    except DatabaseError as e:
        logger.error("Failed to initialize database schema: %s", e)
        raise
