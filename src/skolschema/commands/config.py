"""Config commands -- view and modify the global configuration.

``skolschema config show`` prints the effective ``config.json`` contents and
``skolschema config set`` updates one dotted key, e.g. ``cache.enabled``.
"""

from __future__ import annotations

import json

import pydantic
import typer

from skolschema.output import error, info, print_data, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show() -> None:
    """Show the stored configuration as JSON.

    Example::

        skolschema config show
    """
    from skolschema.config import get_config_dir, load_global_config

    config = load_global_config()
    info(f"Config directory: {get_config_dir()}")
    print_data(json.dumps(config.model_dump(mode="json"), indent=2))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(help="Config key in dot notation, e.g. 'request.base_url'."),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a configuration value.

    The value is coerced to the type of the current setting (bool, int or
    str) and the whole config is validated before it is saved.

    Example::

        skolschema config set cache.enabled false
        skolschema config set request.timeout 10
    """
    from skolschema.config import load_global_config, save_global_config
    from skolschema.models import GlobalConfig

    data = load_global_config().model_dump(mode="json")

    *parents, final_key = key.split(".")
    target = data
    for part in parents:
        if not isinstance(target.get(part), dict):
            error(f"Invalid config key: {key}")
            raise typer.Exit(code=2)
        target = target[part]
    if final_key not in target or isinstance(target[final_key], dict):
        error(f"Unknown config key: {key}")
        raise typer.Exit(code=2)

    current = target[final_key]
    if isinstance(current, bool):
        coerced: object = value.lower() in ("true", "1", "yes", "on")
    elif isinstance(current, int):
        try:
            coerced = int(value)
        except ValueError:
            error(f"Expected integer for {key}, got: {value}")
            raise typer.Exit(code=2) from None
    else:
        coerced = value
    target[final_key] = coerced

    try:
        config = GlobalConfig.model_validate(data)
    except pydantic.ValidationError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=2) from None

    save_global_config(config)
    success(f"Set {key} = {coerced}")
