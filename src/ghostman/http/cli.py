"""
HTTP request composer CLI commands.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from pathlib import Path

import click
from click.core import ParameterSource
from rich.console import Console
from rich.markup import escape

from ghostman.config import get_config
from ghostman.errors import ConfigurationError, GhostmanError, MalformedFlagError
from ghostman.http.body import Body, FormBody, GenericBody, MultipartBody, read_file
from ghostman.http.client import HTTPClient, Response
from ghostman.http.dump import buffer_body, dump_request, dump_response
from ghostman.http.render import build_tree
from ghostman.http.request import Flag, Options, RequestConfig
from ghostman.logging_config import enable_debug

logger = logging.getLogger(__name__)


# =============================================================================
# Flag parsing
# =============================================================================

def parse_key_values(items: list[str] | tuple[str, ...]) -> dict[str, list[str]]:
    """Parse 'Key:value[,value...]' flags.

    -H "Accept:application/json,text/plain" -> {"Accept": ["application/json", "text/plain"]}
    """
    result: dict[str, list[str]] = {}
    for raw in items:
        key, sep, values = raw.partition(":")
        if not sep:
            raise MalformedFlagError(f"wrong key:value pair format: {raw}")
        result.setdefault(key.strip(), []).extend(v.strip() for v in values.split(","))
    return result


def parse_key_single_value(items: list[str] | tuple[str, ...]) -> dict[str, str]:
    """Parse 'Key:value' flags; the value is kept whole."""
    result: dict[str, str] = {}
    for raw in items:
        key, sep, value = raw.partition(":")
        if not sep:
            raise MalformedFlagError(f"wrong key:value pair format: {raw}")
        result[key.strip()] = value.strip()
    return result


def _split_assignment(raw: str, flag: str) -> tuple[str, str]:
    key, sep, value = raw.strip().partition("=")
    if not sep:
        raise MalformedFlagError(f"wrong {flag} syntax, expected name=value: {raw}")
    return key, value


def attach_data(arg: str) -> GenericBody:
    """--data: inline content, or '@path' for a file."""
    arg = arg.strip()
    if arg.startswith("@"):
        return GenericBody.from_file(arg[1:])
    return GenericBody.from_text(arg)


def attach_form(args: tuple[str, ...]) -> FormBody:
    """--form name=value; '@path' inlines the file's text."""
    pairs = []
    for arg in args:
        key, value = _split_assignment(arg, "form")
        if value.startswith("@"):
            value = read_file(value[1:]).decode("utf-8", errors="replace")
        pairs.append((key, value))
    return FormBody.from_pairs(pairs)


def attach_multipart(args: tuple[str, ...]) -> MultipartBody:
    """--part name=value; '@path' attaches a file, '<@path' inlines its text."""
    body = MultipartBody()
    for arg in args:
        key, value = _split_assignment(arg, "part")
        if value.startswith("<@"):
            body.add_text_field(key, read_file(value[2:]).decode("utf-8", errors="replace"))
        elif value.startswith("@"):
            body.add_file_from_path(key, value[1:])
        else:
            body.add_text_field(key, value)
    return body


def attach_body(data: str | None, form: tuple[str, ...], part: tuple[str, ...]) -> Body | None:
    given = [name for name, value in (("--data", data), ("--form", form), ("--part", part)) if value]
    if len(given) > 1:
        raise MalformedFlagError(f"only one body flag may be used, got {', '.join(given)}")
    if data:
        return attach_data(data)
    if form:
        return attach_form(form)
    if part:
        return attach_multipart(part)
    return None


# =============================================================================
# Request assembly and execution
# =============================================================================

def build_request(
    target: str,
    from_file: bool = False,
    method: str | None = None,
    header: tuple[str, ...] = (),
    query: tuple[str, ...] = (),
    cookie: tuple[str, ...] = (),
    data: str | None = None,
    form: tuple[str, ...] = (),
    part: tuple[str, ...] = (),
    overrides: Options | None = None,
) -> RequestConfig:
    """RequestConfig from a URL or JSON file, with flags applied on top."""
    overrides = overrides or Options()
    if from_file:
        try:
            raw = Path(target).read_bytes()
        except OSError as e:
            raise ConfigurationError(f"reading request file {target!r}: {e}") from e
        req = RequestConfig.from_json(raw)
        req.options = req.options.merged(overrides)
    else:
        req = RequestConfig.new(target, options=overrides)

    if method:
        req.method = method

    for key, values in parse_key_values(header).items():
        req.add_header(key, *values)
    for key, values in parse_key_values(query).items():
        req.add_query_param(key, *values)
    for name, value in parse_key_single_value(cookie).items():
        req.add_cookie(name, value)

    body = attach_body(data, form, part)
    if body is not None:
        req.set_body(body)
    return req


def _report_status(response: Response) -> None:
    """Note redirects and error statuses on stderr; stdout keeps the body."""
    if response.is_success:
        return
    status = f"{response.status_code} {response.status_text}".rstrip()
    err = Console(stderr=True)
    if response.is_redirect and response.location:
        err.print(f"[yellow]Redirect not followed ({status}): {escape(response.location)}[/yellow]")
    elif response.is_client_error:
        err.print(f"[red]Client error: {escape(status)}[/red]")
    elif response.is_server_error:
        err.print(f"[red]Server error: {escape(status)}[/red]")


def execute(req: RequestConfig, client: HTTPClient, console: Console, output: str | None = None) -> Response | None:
    """Preview and/or send the request, then render the response.

    When both are requested the send runs in the background while the
    preview renders; the result is collected once the preview is out.
    """
    options = req.options
    request = req.to_httpx(user_agent=client.config.user_agent)

    with ThreadPoolExecutor(max_workers=1) as executor:
        future = None
        if options.enabled("send_request"):
            buffer_body(request)
            future = executor.submit(client.send, request)

        if options.enabled("dump_request"):
            console.print(build_tree(dump_request(request)))

        if future is None:
            return None
        response = future.result()

    if options.enabled("dump_request"):
        console.print()

    _report_status(response)

    if options.enabled("dump_response"):
        console.print(build_tree(dump_response(response)))
    elif output:
        with open(output, "wb") as f:
            response.write_body_to(f)
        console.print(f"[green]Response saved to {escape(output)}[/green]")
    else:
        text = response.text
        click.echo(text, nl=not text.endswith("\n"))
    return response


# =============================================================================
# Commands
# =============================================================================

FLAG_OPTIONS = (
    "verbose",
    "send_request",
    "dump_request",
    "dump_response",
    "sanitize_query",
    "sanitize_headers",
    "sanitize_cookies",
)


def _overrides(ctx: click.Context, params: dict) -> Options:
    """Options holding only the flags given on the command line."""
    options = Options()
    for name in FLAG_OPTIONS:
        if ctx.get_parameter_source(name) in (ParameterSource.COMMANDLINE, ParameterSource.ENVIRONMENT):
            setattr(options, name, Flag.from_bool(params[name]))
    if params.get("timeout") is not None:
        options.timeout = params["timeout"]
    return options


def request_options(f):
    """Options shared by every request command."""
    decorators = [
        click.option("-H", "--header", multiple=True, help="Header as 'Name:value[,value...]'"),
        click.option("-Q", "--query", multiple=True, help="Query param as 'name:value[,value...]'"),
        click.option("-C", "--cookie", multiple=True, help="Cookie as 'name:value'"),
        click.option("--data", help="Request body; '@path' reads a file"),
        click.option("--form", multiple=True, help="Form field 'name=value'; '@path' inlines a file"),
        click.option("--part", multiple=True,
                     help="Multipart field 'name=value'; '@path' attaches a file, '<@path' inlines it"),
        click.option("--send-request/--no-send-request", default=True, help="Send the request"),
        click.option("--dump-request/--no-dump-request", default=False, help="Show the request tree"),
        click.option("--dump-response/--no-dump-response", default=False,
                     help="Show the response tree instead of the raw body"),
        click.option("--sanitize-query/--no-sanitize-query", default=True, help="Omit empty query parameters"),
        click.option("--sanitize-headers/--no-sanitize-headers", default=True, help="Omit empty headers"),
        click.option("--sanitize-cookies/--no-sanitize-cookies", default=True, help="Omit empty cookies"),
        click.option("-t", "--timeout", type=click.FloatRange(min=0, min_open=True), help="Request timeout in seconds"),
        click.option("-k", "--insecure", is_flag=True, help="Disable SSL verification"),
        click.option("-v", "--verbose", is_flag=True, default=False, help="Debug logging"),
        click.option("-o", "--output", help="Save response body to file"),
    ]
    for decorator in reversed(decorators):
        f = decorator(f)
    return f


def _run(ctx: click.Context, target: str, method: str | None, from_file: bool, params: dict) -> None:
    console = Console()
    overrides = _overrides(ctx, params)

    try:
        req = build_request(
            target,
            from_file=from_file,
            method=method,
            header=params["header"],
            query=params["query"],
            cookie=params["cookie"],
            data=params["data"],
            form=params["form"],
            part=params["part"],
            overrides=overrides,
        )
        if req.options.enabled("verbose"):
            enable_debug()

        config = get_config()
        if params["insecure"]:
            config = replace(config, verify_ssl=False)

        with HTTPClient(config) as client:
            execute(req, client, console, output=params["output"])
    except GhostmanError as e:
        logger.debug("Request failed", exc_info=True)
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise SystemExit(1)


@click.group()
def http():
    """Compose, preview and send HTTP requests."""
    pass


@http.command("request")
@click.argument("target")
@click.option("-X", "--method", help="HTTP method (GET, POST, PUT, DELETE, etc.)")
@click.option("--from-file", is_flag=True, help="TARGET is a JSON request file")
@request_options
@click.pass_context
def request_cmd(ctx, target: str, method: str | None, from_file: bool, **params):
    """Build and send a request to TARGET (a URL, or a JSON file with --from-file).

    \b
    Examples:
        ghostman http request https://api.example.com/users -Q page:2
        ghostman http request https://api.example.com/users -X POST --data '{"name": "test"}'
        ghostman http request https://api.example.com/upload -X POST --part name=bob --part file=@report.pdf
        ghostman http request request.json --from-file --dump-request --no-send-request
    """
    _run(ctx, target, method, from_file, params)


@http.command("get")
@click.argument("url")
@request_options
@click.pass_context
def get_cmd(ctx, url: str, **params):
    """Make a GET request (shortcut).

    \b
    Examples:
        ghostman http get https://api.example.com/users
        ghostman http get https://api.example.com/data -H Accept:application/json --dump-response
    """
    _run(ctx, url, "GET", False, params)


@http.command("post")
@click.argument("url")
@request_options
@click.pass_context
def post_cmd(ctx, url: str, **params):
    """Make a POST request (shortcut).

    \b
    Examples:
        ghostman http post https://api.example.com/users --data '{"name": "test"}'
        ghostman http post https://api.example.com/form --form name=test --form value=123
    """
    _run(ctx, url, "POST", False, params)

