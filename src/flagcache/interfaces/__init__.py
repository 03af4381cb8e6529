"""Interfaces (application boundary) for FLAGCACHE.

Defines framework-free application contracts: the `FlagFetcher` port and the
error taxonomy shared by the service layer and adapters. Business rules stay
out of this package.

Dependency rule: this package may reference `flagcache.domain` types for
annotations only. It may be imported by `flagcache.service_layer`,
`flagcache.adapters`, and `flagcache.bootstrap`.
"""
