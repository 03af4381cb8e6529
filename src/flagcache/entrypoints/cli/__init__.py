"""The ``flagcache`` command line."""
