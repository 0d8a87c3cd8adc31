"""Permissive CORS headers added to every response."""

from __future__ import annotations

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, GET, PATCH, OPTIONS",
    "Access-Control-Allow-Headers": "*",
    "Access-Control-Allow-Credentials": "true",
}


def add_cors_headers(response):
    """Set the CORS headers on a response, replacing any present, and return it."""
    for name, value in CORS_HEADERS.items():
        response.headers[name] = value
    return response