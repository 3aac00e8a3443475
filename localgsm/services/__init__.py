"""Emulated cloud services."""
