import asyncio
import secrets
import time
from typing import Callable

from .risk_engine.classifier import TransactionClassifier
from .risk_engine.core import build_summary, risk_level
from .schemas import (AnalysisRequest, AnalysisResult, AnalysisStatus, ClassificationResult,
                      WalletActivity)
from .sources.gateway import ChainGateway
from .storage.store import RequestStore
from .utils.logs import get_logger

log = get_logger(__name__)


def new_request_id() -> str:
    return "0x" + secrets.token_hex(32)


def completed_result(request: AnalysisRequest, activity: WalletActivity,
                     classification: ClassificationResult) -> AnalysisResult:
    level = risk_level(classification.risk_score)
    return AnalysisResult(
        request_id=request.request_id,
        wallet=request.wallet_address,
        chain_id=request.chain_id,
        payment_tx_hash=request.payment_tx_hash,
        status=AnalysisStatus.COMPLETED,
        risk_score=classification.risk_score,
        risk_level=level,
        summary=build_summary(level, classification.flags),
        flags=classification.flags,
        transaction_count=classification.transaction_count,
        analyzed_count=classification.analyzed_count,
        transaction_data={
            "sent_count": len(activity.outbound_logs),
            "received_count": len(activity.inbound_transfers),
            "skipped_count": classification.skipped_count,
            "block_range": activity.block_range.to_dict(),
        },
    )


def failed_result(request: AnalysisRequest, error: str) -> AnalysisResult:
    return AnalysisResult(
        request_id=request.request_id,
        wallet=request.wallet_address,
        chain_id=request.chain_id,
        payment_tx_hash=request.payment_tx_hash,
        status=AnalysisStatus.FAILED,
        risk_score=0,
        risk_level=risk_level(0),
        summary="Analysis failed.",
        error=error,
    )


class AnalysisOrchestrator:
    """Acepta solicitudes, lanza el análisis en segundo plano y guarda el resultado.

    El llamador solo recibe el request_id; el resultado se observa únicamente
    a través del RequestStore.
    """

    def __init__(self, gateway: ChainGateway, classifier: TransactionClassifier, store: RequestStore,
                 max_concurrent: int = 8, dedup_window_seconds: int = 0,
                 on_result: Callable[[AnalysisResult], None] | None = None):
        self.gateway = gateway
        self.classifier = classifier
        self.store = store
        self.dedup_window_seconds = dedup_window_seconds
        self.on_result = on_result
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._tasks: set[asyncio.Task] = set()
        self._inflight: dict[tuple, str] = {}

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def _dedup_key(self, wallet_address: str, chain_id: int) -> tuple | None:
        if self.dedup_window_seconds <= 0:
            return None
        bucket = int(time.time() // self.dedup_window_seconds)
        return (wallet_address.lower(), chain_id, bucket)

    def submit(self, wallet_address: str, chain_id: int, payment_tx_hash: str | None = None) -> str:
        # falla en el acto si no hay proveedor; no se crea ninguna entrada
        self.gateway.client_for(chain_id)

        key = self._dedup_key(wallet_address, chain_id)
        if key is not None and key in self._inflight:
            request_id = self._inflight[key]
            log.info("analysis_deduplicated", wallet=wallet_address, chain_id=chain_id, request_id=request_id)
            return request_id

        request = AnalysisRequest(
            request_id=new_request_id(),
            wallet_address=wallet_address,
            chain_id=chain_id,
            payment_tx_hash=payment_tx_hash,
        )
        task = asyncio.get_running_loop().create_task(self._run(request, key))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        if key is not None:
            self._inflight[key] = request.request_id

        log.info("analysis_submitted", wallet=wallet_address, chain_id=chain_id,
                 request_id=request.request_id, payment_tx_hash=payment_tx_hash)
        return request.request_id

    async def _run(self, request: AnalysisRequest, key: tuple | None = None) -> AnalysisResult:
        try:
            async with self._semaphore:
                result = await self._analyze(request)
            self.store.put(result)
        finally:
            if key is not None:
                self._inflight.pop(key, None)

        if self.on_result is not None:
            try:
                await asyncio.to_thread(self.on_result, result)
            except Exception:
                log.exception("audit_write_failed", request_id=request.request_id)
        return result

    async def _analyze(self, request: AnalysisRequest) -> AnalysisResult:
        log.info("analysis_started", wallet=request.wallet_address, request_id=request.request_id)
        try:
            activity = await self.gateway.fetch_wallet_activity(request.wallet_address, request.chain_id)
            classification = await self.classifier.classify(request.wallet_address, activity)
        except Exception as e:
            # nunca se propaga al llamador: el estado terminal es FAILED
            log.error("analysis_failed", wallet=request.wallet_address, request_id=request.request_id,
                      error=str(e), error_type=type(e).__name__)
            return failed_result(request, str(e))

        result = completed_result(request, activity, classification)
        log.info("analysis_completed", wallet=request.wallet_address, request_id=request.request_id,
                 risk_score=result.risk_score, flags=len(result.flags))
        return result

    async def join(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def shutdown(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*list(self._tasks), return_exceptions=True)
