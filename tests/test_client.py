import asyncio

import httpx
import pytest

from evm_risk.client import AnalysisClient
from evm_risk.errors import AnalysisTimeout

RID = "0x" + "42" * 32


class FakeServer:
    def __init__(self, ready_after: int | None):
        self.ready_after = ready_after
        self.polls = 0
        self.bodies = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            self.bodies.append(request.content)
            return httpx.Response(200, json={"requestId": RID, "status": "analyzing"})
        self.polls += 1
        if self.ready_after is not None and self.polls > self.ready_after:
            return httpx.Response(200, json={"request_id": RID, "status": "COMPLETED", "risk_score": 40})
        return httpx.Response(404, json={"detail": "Analysis not found or still in progress"})


def _client(server):
    return AnalysisClient("http://api.test", transport=httpx.MockTransport(server.handler))


def test_submit_and_wait():
    server = FakeServer(ready_after=3)
    client = _client(server)

    async def go():
        rid = await client.submit_analysis("0x" + "ab" * 20, chain_id=10143)
        return await client.wait_for_result(rid, interval=0)

    result = asyncio.run(go())
    assert result["risk_score"] == 40
    assert server.polls == 4
    assert b'"chainId":10143' in server.bodies[0].replace(b" ", b"")


def test_gives_up_after_max_attempts():
    server = FakeServer(ready_after=None)
    client = _client(server)
    with pytest.raises(AnalysisTimeout) as exc:
        asyncio.run(client.wait_for_result(RID, max_attempts=5, interval=0))
    assert server.polls == 5
    assert "taking longer than expected" in str(exc.value)


def test_confirm_payment():
    server = FakeServer(ready_after=0)
    rid = asyncio.run(_client(server).confirm_payment("0x1", "0x" + "ab" * 20, "0x" + "11" * 32, 11155111))
    assert rid == RID
