"""Bootstrap (composition root) for FLAGCACHE.

Assembles the application at runtime: reads configuration, wires the backend
selector to the evaluation cache, and owns the shared database Engine.

Import rules:
- Entry points import *this* package (not adapters/service_layer/interfaces/domain).
- This package may import: `flagcache.adapters`, `flagcache.service_layer`,
  `flagcache.interfaces`, `flagcache.domain`, and `flagcache.config`.
- Inner layers must not import `flagcache.bootstrap`.

Public surface:
- Re-export composition factories from this module; keep wiring helpers internal.
- No business rules live here; this is assembly and lifecycle only.
"""

from .bootstrap import AppContainer, bootstrap, build_engine_provider, build_eval_cache

__all__ = ["AppContainer", "bootstrap", "build_engine_provider", "build_eval_cache"]
