"""Packaged Alembic migration scripts for the flag tables."""
