"""
fb-graph CLI — `fbgraph` command.

Commands:
  fbgraph config show|set       Inspect or update ~/.fbgraph/config.json
  fbgraph oauth <cmd>           Authorization URLs, token exchange, signed requests
  fbgraph request <path>        One raw Graph/REST call
"""

import json
from pathlib import Path
from typing import Optional

try:
    import click
    from rich.console import Console
except ImportError:
    raise SystemExit("CLI requires extras: pip install fb-graph[cli]")

from fb_graph.config import AppConfig, load_config, save_config
from fb_graph.errors import ConfigurationError
from fb_graph.logging import configure_logging
from fb_graph.oauth import OAuth
from fb_graph.transport.http import RequestDispatcher

console = Console()


def _config_path(ctx: click.Context) -> Optional[Path]:
    return ctx.obj.get("config_path") if ctx.obj else None


def _load(ctx: click.Context) -> AppConfig:
    return load_config(_config_path(ctx))


def _get_oauth(ctx: click.Context) -> OAuth:
    cfg = _load(ctx)
    if not cfg.app_id or not cfg.app_secret:
        raise ConfigurationError("app_id and app_secret are required. Run `fbgraph config set` first.")
    return OAuth(cfg.app_id, cfg.app_secret, cfg.callback_url, RequestDispatcher(cfg.http))


@click.group()
@click.version_option("0.1.0")
@click.option("--config", "config_path", type=click.Path(path_type=Path), default=None, help="Config file path")
@click.option("--log-level", default="warning", type=click.Choice(["debug", "info", "warning", "error"]))
@click.option("--log-format", default="console", type=click.Choice(["console", "json"]))
@click.pass_context
def main(ctx: click.Context, config_path: Optional[Path], log_level: str, log_format: str):
    """fb-graph CLI — talk to the Graph API and handle OAuth tokens."""
    configure_logging(level=log_level, format=log_format)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


@main.group("config")
def config_group():
    """Local configuration."""


@config_group.command("show")
@click.pass_context
def config_show(ctx: click.Context):
    """Print the effective configuration (secret masked)."""
    data = _load(ctx).model_dump()
    if data.get("app_secret"):
        data["app_secret"] = "****"
    console.print_json(json.dumps(data))


@config_group.command("set")
@click.option("--app-id", default=None)
@click.option("--app-secret", default=None)
@click.option("--callback-url", default=None)
@click.option("--proxy", default=None)
@click.option("--timeout", default=None, type=float)
@click.option("--always-use-ssl/--no-always-use-ssl", default=None)
@click.option("--ca-file", default=None)
@click.option("--ca-path", default=None)
@click.pass_context
def config_set(ctx: click.Context, app_id, app_secret, callback_url, proxy, timeout, always_use_ssl, ca_file, ca_path):
    """Update saved settings; omitted options keep their current value."""
    path = _config_path(ctx)
    cfg = load_config(path, environ={})
    top = {k: v for k, v in {"app_id": app_id, "app_secret": app_secret, "callback_url": callback_url}.items()
           if v is not None}
    http = {k: v for k, v in {"proxy": proxy, "timeout": timeout, "always_use_ssl": always_use_ssl,
                              "ca_file": ca_file, "ca_path": ca_path}.items() if v is not None}
    updated = cfg.model_copy(update={**top, "http": cfg.http.model_copy(update=http)})
    save_config(updated, path)
    console.print("[green]Configuration saved.[/green]")


# Register subcommands from separate modules
from fb_graph.cli.oauth import oauth
from fb_graph.cli.request import request_cmd

main.add_command(oauth)
main.add_command(request_cmd)


if __name__ == "__main__":
    main()
