"""Docs API service factory."""

from functools import lru_cache

from googleapiclient.discovery import build


@lru_cache(maxsize=1)
def get_docs_service():
    """Build and cache a Docs API v1 service object.

    Uses lru_cache to ensure a single service instance per CLI invocation.
    Lazy-imports get_credentials so that ``docsctl compile`` and
    ``docsctl --help`` never touch stored credentials.
    """
    from docsctl.auth import get_credentials

    creds = get_credentials()
    return build("docs", "v1", credentials=creds)
