from typing import List

import pytest

from batchwatch import ClientConfig, UploadFile
from batchwatch.testing.fake_server import FakeProcessingServer
from batchwatch.testing.pytest_integration import create_controller_fixture

# Polling is sped up, so that tests don't take seconds each.
config = ClientConfig(base_url="http://batchwatch.test/", poll_interval=0.1)


controller = create_controller_fixture(config)


@pytest.fixture
def client_config() -> ClientConfig:
    return config


@pytest.fixture
def fake_server() -> FakeProcessingServer:
    return FakeProcessingServer()


@pytest.fixture
def upload_files() -> List[UploadFile]:
    return [
        UploadFile(file_name=name, content=b"%PDF-1.4 " + name.encode())
        for name in ("a.pdf", "b.pdf", "c.pdf")
    ]
