"""Service layer for FLAGCACHE.

Implements the application use-cases: building snapshots from fetched flags,
installing them into the evaluation cache, and driving periodic refreshes.

Dependency rule: may import `flagcache.domain`, `flagcache.interfaces`,
`flagcache.utils` and the wire envelope (`flagcache.adapters.envelope`), but
not the concrete backends or `flagcache.entrypoints`. Backends arrive through
a fetcher factory.
"""
