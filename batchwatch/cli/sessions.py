import asyncio
import logging
from typing import Optional

import typer

from batchwatch.cli.cli_state import state
from batchwatch.cli.run_in_loop import run_in_loop
from batchwatch.client.processing_client import ProcessingClient
from batchwatch.display.progress_report import OutputFormat, render_progress
from batchwatch.exceptions.upload_exceptions import TransientPollError

_log = logging.getLogger(__name__)


@run_in_loop
async def progress(
    session_id: str = typer.Argument(  # noqa: B008
        ...,
        metavar="session-id",
        help="Session ID to get the progress of",
    ),
    format: OutputFormat = typer.Option(  # noqa: B008
        OutputFormat.TEXT, metavar="format"
    ),
    poll: Optional[float] = typer.Option(  # noqa: B008
        None,
        metavar="poll",
        help="If passed, keep querying every this many seconds, until the session is done",
    ),
) -> None:
    """Get the progress of a session"""

    async with ProcessingClient(state["config"]) as client:
        while True:
            try:
                current = await client.fetch_progress(session_id)
            except TransientPollError as exc:
                if not poll:
                    _log.error("%s", exc)
                    raise typer.Exit(1)

                _log.warning("%s", exc)
            else:
                if poll and format == OutputFormat.TEXT:
                    typer.clear()

                print(render_progress(current, True, format=format))

                if not poll or current.done:
                    break

            await asyncio.sleep(poll)
