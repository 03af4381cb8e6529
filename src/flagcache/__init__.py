"""FLAGCACHE

A read-optimized, in-memory snapshot of a feature-flag dataset. The snapshot
is refreshed from a database, a local JSON file, a JSON document served over
HTTP, or a JSON object in S3, and is swapped in atomically so readers never
see a half-built generation.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
