"""WSGI entrypoint for Gunicorn.

Usage:
  gunicorn -w 1 --threads 4 -b 0.0.0.0:8000 wsgi:app

Number callers run as threads inside the worker, so keep a single worker
process per game host.
"""

from tambola import create_app

app = create_app()
