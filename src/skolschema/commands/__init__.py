"""Maintenance sub-command groups registered on the root Typer app.

Modules:
    cache: ``skolschema cache`` -- inspect and clear the response cache.
    config: ``skolschema config`` -- view and modify ``config.json``.
"""
