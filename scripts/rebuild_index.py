#!/usr/bin/env python3
"""
Index Rebuild Utility
Re-embeds every stored document with the configured embedding provider, e.g.
after EMBED_DIMENSION or EMBED_MODE changed.
"""

import argparse
import sys

from knowledge_base.core.config import DB_PATH, get_document_store, get_embedding_provider
from knowledge_base.core.exceptions import KnowledgeBaseError
from knowledge_base.core.service import KnowledgeBaseService


def main(argv=None):
    """Rebuild document vectors in place."""
    parser = argparse.ArgumentParser(description="Re-embed all stored documents")
    parser.add_argument("--db-path", default=DB_PATH, help="SQLite database path")
    args = parser.parse_args(argv)

    print(f"Starting index rebuild for {args.db_path}...")

    try:
        store = get_document_store(args.db_path)
    except KnowledgeBaseError as e:
        print(f"ERROR: {e.message}")
        return 1

    try:
        embedder = get_embedding_provider()
        service = KnowledgeBaseService(store, embedder)
        total = store.count()
        print(f"Found {total} documents")

        changed = service.reindex()
        print(f"✓ Re-embedded {changed} of {total} documents (dimension {embedder.get_dimension()})")
    except KnowledgeBaseError as e:
        print(f"ERROR: Rebuild failed: {e.message}")
        return 1
    finally:
        store.close()

    print("Index rebuild complete!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
