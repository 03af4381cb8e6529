"""Support namespace for cross-cutting, dependency-light helpers.

This package provides a neutral location for small, reusable helpers that
would otherwise clutter feature packages. It is not a new architectural layer.

Scope:
- Small helpers with minimal dependencies (e.g., synchronization primitives,
  trivial env parsing).
- No business rules, no orchestration, no wiring.

Import direction:
- May be imported by any FLAGCACHE package.
- Must not import from application packages. Keep dependencies to the standard library.

Public API:
- Nothing is re-exported at the package level by default. Import specific
  helpers from their defining modules to avoid incidental coupling.
"""
