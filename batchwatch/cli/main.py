import logging
from pathlib import Path
from typing import Optional

import typer

from batchwatch.cli import sessions, uploads
from batchwatch.cli.cli_state import state
from batchwatch.cli.models import LogLevel
from batchwatch.client.client_config import ClientConfig

main = typer.Typer(name="batchwatch")


@main.callback()
def callback(
    config_file: Optional[Path] = typer.Option(  # noqa: B008
        None,
        "--config",
        metavar="config",
        help="JSON file with the client configuration",
        exists=True,
        dir_okay=False,
    ),
    base_url: Optional[str] = typer.Option(  # noqa: B008
        None, metavar="base-url", help="Root URL of the processing server"
    ),
    token: Optional[str] = typer.Option(  # noqa: B008
        None, metavar="token", envvar="BATCHWATCH_TOKEN", help="Bearer token"
    ),
    log_level: LogLevel = typer.Option("INFO", metavar="log-level"),  # noqa: B008
    log_format: str = typer.Option(  # noqa: B008
        "%(asctime)s:%(name)s:%(levelname)s:%(message)s", metavar="log-format"
    ),
) -> None:
    """batchwatch CLI"""

    logging.basicConfig(
        level=getattr(logging, log_level.value),
        format=log_format,
    )

    if config_file is not None:
        config = ClientConfig.from_file(str(config_file))
    else:
        config = ClientConfig()

    overrides = {}

    if base_url is not None:
        overrides["base_url"] = base_url

    if token is not None:
        overrides["token"] = token

    state["config"] = config.model_copy(update=overrides)


main.command("upload")(uploads.upload)
main.command("progress")(sessions.progress)


if __name__ == "__main__":
    main()
