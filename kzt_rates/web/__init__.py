"""HTMX dashboard and JSON read API."""

from kzt_rates.web.app import create_app

__all__ = ["create_app"]
