"""Domain layer for FLAGCACHE.

Contains the flag model and the evaluation-preparation rules that every flag
must pass before it can be served from the cache. This package is deliberately
technology-agnostic.

Dependency rule: do not import from `flagcache.adapters` or `flagcache.entrypoints`.
"""
