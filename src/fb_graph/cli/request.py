"""CLI: fbgraph request <path>"""

import json

import click
from rich.console import Console
from rich.markup import escape

from fb_graph.config import AppConfig
from fb_graph.errors import FacebookError
from fb_graph.models.connection import RequestOptions
from fb_graph.transport.http import RequestDispatcher

console = Console()


def _load(ctx: click.Context) -> AppConfig:
    from fb_graph.cli.main import _load
    return _load(ctx)


def _parse_param(raw: str) -> tuple[str, str]:
    key, sep, value = raw.partition("=")
    if not sep or not key:
        raise click.BadParameter(f"expected key=value, got {raw!r}")
    return key, value


@click.command("request")
@click.argument("path")
@click.option("-p", "--param", "params", multiple=True, help="key=value, repeatable")
@click.option("--verb", default="get", show_default=True, help="get, post, or a custom method name")
@click.option("--rest", "rest_api", is_flag=True, help="Target the REST server instead of Graph")
@click.option("--ssl/--no-ssl", "use_ssl", default=None)
@click.option("--timeout", default=None, type=float)
@click.option("--json-output", "--json", is_flag=True)
@click.pass_context
def request_cmd(ctx: click.Context, path, params, verb, rest_api, use_ssl, timeout, json_output):
    """Send one request and print the status and body."""
    args = dict(_parse_param(p) for p in params)
    dispatcher = RequestDispatcher(_load(ctx).http)
    options = RequestOptions(use_ssl=use_ssl, timeout=timeout, rest_api=rest_api)
    try:
        response = dispatcher.execute(path, args, verb, options)
    except FacebookError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise SystemExit(1)

    if json_output:
        click.echo(json.dumps({"status": response.status, "headers": dict(response.headers), "body": response.body}))
        return
    color = "green" if response.status < 400 else "red"
    console.print(f"[{color}]HTTP {response.status}[/{color}]")
    click.echo(response.body)
