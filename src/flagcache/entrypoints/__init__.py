"""Entrypoints (inbound adapters) for FLAGCACHE.

Expose the evaluation cache to the outside world. Today that is the
``flagcache`` command line; an HTTP evaluation API would live here too.
Entrypoints parse and validate inputs, obtain the wired application from
`flagcache.bootstrap`, and present results.

Dependency rule: may import `flagcache.bootstrap` and `flagcache.service_layer`;
avoid importing concrete backends from `flagcache.adapters` directly.
"""
