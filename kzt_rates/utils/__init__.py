"""Shared helpers for :mod:`kzt_rates`."""
