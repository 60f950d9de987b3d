"""
Ghostman command-line entry point.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

import click

from ghostman import __version__
from ghostman.http.cli import http
from ghostman.logging_config import configure_logging


@click.group()
@click.version_option(__version__, prog_name="ghostman")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--log-file", type=click.Path(dir_okay=False), help="Also write logs to this file")
def main(debug: bool, log_file: str | None):
    """Ghostman - compose, preview and send HTTP requests.

    \b
    Examples:
        ghostman http get https://api.example.com/users --dump-response
        ghostman http request req.json --from-file --dump-request
    """
    configure_logging(debug=debug, log_file=log_file)


main.add_command(http)


if __name__ == "__main__":
    main()
