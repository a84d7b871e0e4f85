"""Shared infrastructure: database base, logging, token resolution, fan-out."""
