"""Narrow per-entity data access used by the services."""
