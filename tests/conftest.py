"""Pytest fixtures: a fake EVM JSON-RPC node served through httpx.MockTransport."""

import json
from decimal import Decimal

import httpx
import pytest

from evm_risk.sources.evm_rpc import EvmRpcClient

WALLET = "0x" + "ab" * 20
CONTRACT = "0x" + "cd" * 20
SEPOLIA = 11155111
MONAD = 10143


def wei(units) -> str:
    return hex(int(Decimal(str(units)) * 10 ** 18))


class FakeNode:
    def __init__(self, head: int = 20000):
        self.head = head
        self.sent_logs: list[dict] = []
        self.received_logs: list[dict] = []
        self.txs: dict[str, dict] = {}
        self.receipts: dict[str, dict] = {}
        self.failing: set[str] = set()
        self.fail_methods: set[str] = set()
        self.calls: list[tuple[str, list]] = []
        self._seq = 0

    def _next_hash(self) -> str:
        self._seq += 1
        return "0x" + f"{self._seq:064x}"

    def add_tx(self, value="0x0", data="0x", to=CONTRACT, emit_log=True) -> str:
        tx_hash = self._next_hash()
        self.txs[tx_hash] = {"hash": tx_hash, "from": WALLET, "to": to, "value": value, "input": data}
        if emit_log:
            self.sent_logs.append({
                "address": WALLET,
                "topics": [],
                "data": "0x",
                "blockNumber": hex(self.head - 1),
                "transactionHash": tx_hash,
            })
        return tx_hash

    def add_receipt(self, status: str = "0x1") -> str:
        tx_hash = self._next_hash()
        self.receipts[tx_hash] = {"transactionHash": tx_hash, "status": status}
        return tx_hash

    def count(self, method: str) -> int:
        return sum(1 for m, _ in self.calls if m == method)

    def handler(self, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        method, params = payload["method"], payload["params"]
        self.calls.append((method, params))

        def reply(result):
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": payload["id"], "result": result})

        if method in self.fail_methods:
            return httpx.Response(500, json={"message": "upstream down"})
        if method == "eth_blockNumber":
            return reply(hex(self.head))
        if method == "eth_getLogs":
            return reply(self.received_logs if "topics" in params[0] else self.sent_logs)
        if method == "eth_getTransactionByHash":
            if params[0] in self.failing:
                return httpx.Response(200, json={"jsonrpc": "2.0", "id": payload["id"],
                                                 "error": {"code": -32000, "message": "header not found"}})
            return reply(self.txs.get(params[0]))
        if method == "eth_getTransactionReceipt":
            return reply(self.receipts.get(params[0]))
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": payload["id"],
                                         "error": {"code": -32601, "message": "method not found"}})

    def client(self, chain_id: int = SEPOLIA, symbol: str = "ETH") -> EvmRpcClient:
        return EvmRpcClient(chain_id, "https://rpc.test/v2/secret", symbol=symbol,
                            transport=httpx.MockTransport(self.handler))


@pytest.fixture
def node():
    return FakeNode()


@pytest.fixture
def providers(node):
    return {SEPOLIA: node.client()}
