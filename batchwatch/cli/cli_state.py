from typing import TypedDict

from batchwatch.client.client_config import ClientConfig


class CliState(TypedDict):
    config: ClientConfig


state = CliState(config=ClientConfig())
