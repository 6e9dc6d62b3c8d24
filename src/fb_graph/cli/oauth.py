"""CLI: fbgraph oauth url|token|app-token|exchange|parse-signed"""

import json
from typing import NoReturn, Optional

import click
from rich.console import Console
from rich.markup import escape

from fb_graph.errors import FacebookError
from fb_graph.oauth import OAuth

console = Console()


def _get_oauth(ctx: click.Context) -> OAuth:
    from fb_graph.cli.main import _get_oauth
    return _get_oauth(ctx)


def _fail(error: FacebookError) -> NoReturn:
    console.print(f"[red]{escape(str(error))}[/red]")
    raise SystemExit(1)


@click.group()
def oauth():
    """OAuth commands."""


@oauth.command("url")
@click.option("--callback", default=None, help="Redirect URI (defaults to configured callback_url)")
@click.option("--permissions", default=None, help="Comma-separated scope")
@click.option("--display", default=None, help="Dialog display mode, e.g. page or popup")
@click.pass_context
def oauth_url(ctx: click.Context, callback: Optional[str], permissions: Optional[str], display: Optional[str]):
    """Print the authorization dialog URL."""
    try:
        click.echo(_get_oauth(ctx).authorization_url(callback=callback, permissions=permissions, display=display))
    except FacebookError as e:
        _fail(e)


@oauth.command("token")
@click.argument("code")
@click.option("--callback", default=None)
@click.pass_context
def oauth_token(ctx: click.Context, code: str, callback: Optional[str]):
    """Exchange an authorization code for an access token."""
    try:
        with console.status("Exchanging code..."):
            info = _get_oauth(ctx).fetch_access_token_info(code, callback=callback)
    except FacebookError as e:
        _fail(e)
    click.echo(json.dumps(info))


@oauth.command("app-token")
@click.pass_context
def oauth_app_token(ctx: click.Context):
    """Fetch the app access token (client credentials)."""
    try:
        with console.status("Fetching app token..."):
            token = _get_oauth(ctx).fetch_app_access_token()
    except FacebookError as e:
        _fail(e)
    click.echo(token)


@oauth.command("exchange")
@click.argument("keys", nargs=-1, required=True)
@click.pass_context
def oauth_exchange(ctx: click.Context, keys: tuple[str, ...]):
    """Exchange legacy session keys for access tokens."""
    try:
        results = _get_oauth(ctx).exchange_session_keys(list(keys))
    except FacebookError as e:
        _fail(e)
    for key, info in zip(keys, results):
        if info is None:
            console.print(f"{key}: [yellow]invalid[/yellow]")
        else:
            console.print(f"{key}: [green]{info.get('access_token', '')}[/green]")


@oauth.command("parse-signed")
@click.argument("signed_request")
@click.pass_context
def oauth_parse_signed(ctx: click.Context, signed_request: str):
    """Verify a signed request and print its payload."""
    try:
        payload = _get_oauth(ctx).parse_signed_request(signed_request)
    except FacebookError as e:
        _fail(e)
    click.echo(json.dumps(payload, sort_keys=True))
