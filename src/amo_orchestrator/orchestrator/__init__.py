"""Workflow orchestration components.

Provides:
- Settings loaded from .env
- Structured logging
- An HTTP client for the add-ons API
- The effect scheduler and the workflow procedures it drives
"""
