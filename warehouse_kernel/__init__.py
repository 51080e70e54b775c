"""Warehouse kernel: persistence, typed errors, logging and flush-only services."""
