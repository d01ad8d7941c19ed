"""Appointment booking and lifecycle endpoints."""

from src.web.handler import JSONRequestHandler


class handler(JSONRequestHandler):
    """Vercel serverless function handler."""
