import itertools

import httpx

from ..errors import GatewayError, JsonRpcError
from ..utils.address import hex_to_int


class EvmRpcClient:
    """Cliente JSON-RPC mínimo para un nodo EVM (Alchemy o RPC público)."""

    def __init__(self, chain_id: int, url: str, symbol: str = "ETH", timeout: float = 20.0,
                 transport: httpx.AsyncBaseTransport | None = None):
        self.chain_id = chain_id
        self.url = url
        self.symbol = symbol
        self.timeout = timeout
        self._transport = transport
        self._ids = itertools.count(1)

    async def call(self, method: str, params: list):
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                r = await client.post(self.url, json=payload)
                r.raise_for_status()
                body = r.json()
        except (httpx.HTTPError, ValueError) as exc:
            # la URL lleva la API key: no se incluye en el mensaje
            raise GatewayError(f"{method} failed on chain {self.chain_id}: {type(exc).__name__}",
                               chain_id=self.chain_id, method=method) from exc

        err = body.get("error") if isinstance(body, dict) else None
        if err:
            cause = JsonRpcError(err.get("code"), err.get("message", "unknown error"))
            raise GatewayError(f"{method} failed on chain {self.chain_id}: {cause}",
                               chain_id=self.chain_id, method=method) from cause
        if not isinstance(body, dict) or "result" not in body:
            raise GatewayError(f"{method} returned an unexpected response on chain {self.chain_id}",
                               chain_id=self.chain_id, method=method)
        return body["result"]

    async def block_number(self) -> int:
        return hex_to_int(await self.call("eth_blockNumber", []))

    async def get_logs(self, from_block: int, to_block: int, address: str | None = None,
                       topics: list | None = None) -> list[dict]:
        flt = {"fromBlock": hex(from_block), "toBlock": hex(to_block)}
        if address is not None:
            flt["address"] = address
        if topics is not None:
            flt["topics"] = topics
        return await self.call("eth_getLogs", [flt]) or []

    async def get_transaction(self, tx_hash: str) -> dict | None:
        return await self.call("eth_getTransactionByHash", [tx_hash])

    async def get_transaction_receipt(self, tx_hash: str) -> dict | None:
        return await self.call("eth_getTransactionReceipt", [tx_hash])
