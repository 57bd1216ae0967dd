import logging
import sys
from pathlib import Path
from typing import List, Optional

import typer

from batchwatch.cli.cli_state import state
from batchwatch.cli.run_in_loop import run_in_loop
from batchwatch.client.processing_client import ProcessingClient
from batchwatch.controller.upload_controller import UploadController
from batchwatch.display.progress_report import ConsoleProgressMiddleware, OutputFormat
from batchwatch.model.upload_progress import UploadFile
from batchwatch.model.upload_state import UploadState

_log = logging.getLogger(__name__)


@run_in_loop
async def upload(
    paths: List[Path] = typer.Argument(  # noqa: B008
        ...,
        metavar="files",
        help="Files to upload",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
    format: OutputFormat = typer.Option(  # noqa: B008
        OutputFormat.TEXT, metavar="format"
    ),
    poll_interval: Optional[float] = typer.Option(  # noqa: B008
        None,
        metavar="poll-interval",
        help="Seconds between progress queries. Overrides the configuration.",
    ),
) -> None:
    """Upload files and follow their processing until it's done. Ctrl-C stops following it."""

    config = state["config"]

    if poll_interval is not None:
        config = config.model_copy(update={"poll_interval": poll_interval})

    files = [UploadFile.from_path(path) for path in paths]

    reporter = ConsoleProgressMiddleware(sys.stdout, format=format)

    async with ProcessingClient(config) as client:
        async with UploadController(client, middleware=[reporter]) as controller:
            await controller.upload(files)

            final_state = await controller.wait()

    _log.debug("Upload finished with state=%r", final_state)

    if final_state != UploadState.COMPLETED:
        raise typer.Exit(1)
