import pytest

from widecolumn import WideColumnClient

from .server import ScriptedMutateRowsServer


@pytest.fixture
def _server():
    with ScriptedMutateRowsServer() as server:
        yield server


@pytest.fixture
def _client(_server: ScriptedMutateRowsServer):
    client = WideColumnClient.connect(host="127.0.0.1", port=_server.port)
    yield client
    client.close()
