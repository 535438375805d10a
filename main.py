"""
Entry point for Vercel.

This module exposes the FastAPI application instance defined in the
`novelpress.main` module. Vercel's Python runtime will import this file
and look for an object called `app`, which it uses to handle incoming
HTTP requests.
"""

from novelpress.main import app as app  # noqa: F401  re-export FastAPI instance
