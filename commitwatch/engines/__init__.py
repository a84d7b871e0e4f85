"""Engines: GitHub access, aggregation, scanning and notification."""
