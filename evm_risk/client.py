import asyncio

import httpx

from .errors import AnalysisTimeout
from .utils.logs import get_logger

# como el front original: 30 intentos cada 10 s (5 minutos)
POLL_ATTEMPTS = 30
POLL_INTERVAL_SECONDS = 10.0

log = get_logger(__name__)


class AnalysisClient:
    """Cliente del protocolo enviar -> consultar hasta estado terminal."""

    def __init__(self, base_url: str, timeout: float = 20.0,
                 transport: httpx.AsyncBaseTransport | None = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self._transport)

    async def submit_analysis(self, wallet_address: str, chain_id: int | None = None,
                              payment_tx_hash: str | None = None) -> str:
        body = {"walletAddress": wallet_address}
        if chain_id is not None:
            body["chainId"] = chain_id
        if payment_tx_hash:
            body["paymentTxHash"] = payment_tx_hash
        async with self._client() as client:
            r = await client.post("/api/analyze-wallet", json=body)
            r.raise_for_status()
            return r.json()["requestId"]

    async def confirm_payment(self, request_id: str, wallet_address: str, tx_hash: str,
                              chain_id: int) -> str:
        body = {"requestId": request_id, "walletAddress": wallet_address,
                "txHash": tx_hash, "chainId": chain_id}
        async with self._client() as client:
            r = await client.post("/api/payment-confirmed", json=body)
            r.raise_for_status()
            return r.json()["requestId"]

    async def get_analysis(self, request_id: str) -> dict | None:
        async with self._client() as client:
            r = await client.get(f"/api/analysis/{request_id}")
            if r.status_code == 404:
                return None
            r.raise_for_status()
            return r.json()

    async def wait_for_result(self, request_id: str, max_attempts: int = POLL_ATTEMPTS,
                              interval: float = POLL_INTERVAL_SECONDS) -> dict:
        # rendirse aquí no cancela el análisis en el servidor
        for attempt in range(1, max_attempts + 1):
            result = await self.get_analysis(request_id)
            if result is not None:
                return result
            log.debug("analysis_pending", request_id=request_id, attempt=attempt)
            if attempt < max_attempts:
                await asyncio.sleep(interval)
        raise AnalysisTimeout(request_id, max_attempts)
