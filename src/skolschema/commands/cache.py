"""Cache commands -- inspect and clear the response cache.

Responses are kept without expiry, so ``skolschema cache clear`` is the way
to pick up a timetable that changed after it was first fetched.
"""

from __future__ import annotations

import typer

from skolschema.output import print_table, success


cache_app = typer.Typer(no_args_is_help=True)


@cache_app.command("info")
def cache_info() -> None:
    """Show the cache directory and the number of stored responses."""
    from skolschema.cache import ResponseCache
    from skolschema.config import get_cache_dir

    with ResponseCache(get_cache_dir()) as cache:
        stats = cache.stats()
    print_table(["Directory", "Entries"], [[stats["directory"], str(stats["size"])]])


@cache_app.command("clear")
def cache_clear() -> None:
    """Delete every stored response."""
    from skolschema.cache import ResponseCache
    from skolschema.config import get_cache_dir

    with ResponseCache(get_cache_dir()) as cache:
        cache.clear()
    success("Response cache cleared.")
