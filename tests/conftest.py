from typing import Any, Dict, List, Optional

import pytest

from capacities_mcp.config import Config
from capacities_mcp.server import CapacitiesServer
from capacities_mcp.tools import ToolAdapter
from capacities_mcp.types import OutboundCall

SPACE_ID = "0b6c5d3e-3f1a-4c1e-9a57-2f4d8e7b1c90"
OTHER_SPACE_ID = "7d2f9a10-5b4c-4e8d-8f21-6a3b9c0d1e2f"


class FakeClient:
    """Stands in for the Capacities API and records every call."""

    def __init__(self, response: Optional[Dict[str, Any]] = None, error: Optional[Exception] = None):
        self.response = response if response is not None else {}
        self.error = error
        self.calls: List[OutboundCall] = []

    async def send(self, call: OutboundCall) -> Dict[str, Any]:
        self.calls.append(call)
        if self.error:
            raise self.error
        return self.response


@pytest.fixture
def config() -> Config:
    return Config(token="test-token", default_space_id=SPACE_ID)


@pytest.fixture
def config_without_space() -> Config:
    return Config(token="test-token")


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def adapter(config: Config, fake_client: FakeClient) -> ToolAdapter:
    return ToolAdapter(config, client=fake_client)


@pytest.fixture
def capacities_server(config: Config, adapter: ToolAdapter) -> CapacitiesServer:
    return CapacitiesServer(config, adapter=adapter)
