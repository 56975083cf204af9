"""Observability helpers for kubediscovery."""
