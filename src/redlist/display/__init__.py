"""Presentation of catalog views."""
