"""Browser-based web UI for py-let.

This package provides a Flask application that exposes the py-let
shell through a web browser.  It is an **optional** extra — install
with::

    pip install py-let[web]

The ``create_app`` factory in ``app.py`` builds an engine over a
private in-memory environment, creates a shell, and serves three
endpoints:

- ``GET /`` — HTML terminal page.
- ``POST /api/execute`` — execute a shell command and return JSON.
- ``GET /api/status`` — engine status for polling.
"""
