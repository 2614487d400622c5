"""Shared modules for SafeSpace services."""
