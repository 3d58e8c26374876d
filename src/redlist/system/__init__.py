"""System domain package.

This package contains process-level plumbing:
- PathResolver: Path resolution for configuration and data
- configure_structlog: Structured logging setup
"""
