"""Adapters (infrastructure) for FLAGCACHE.

Provide concrete implementations of the fetcher port (database, local file,
HTTP, S3, memory), the JSON envelope codec, plus persistence mapping and
related wiring (engines, metadata, migrations).

Dependency rule: may import `flagcache.domain`; the domain must not import this
package.
"""
