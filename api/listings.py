"""Listings endpoints: search, CRUD and images."""

from src.web.handler import JSONRequestHandler


class handler(JSONRequestHandler):
    """Vercel serverless function handler."""
