"""Scroll-depth telemetry ingestion and engagement analytics."""
