"""Shared helpers: service manager queries, settings, logging."""
