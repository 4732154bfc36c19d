# evm_risk/main.py
import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from tempfile import mkstemp

from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from pydantic import BaseModel, ConfigDict, Field
from starlette.background import BackgroundTask

from . import config
from .errors import GatewayError, PaymentNotConfirmed, ProviderUnavailable
from .orchestrator import AnalysisOrchestrator
from .payments import PaymentBridge
from .pdf_report.build import build_pdf
from .risk_engine.classifier import TransactionClassifier
from .sources.evm_rpc import EvmRpcClient
from .sources.gateway import ChainGateway
from .storage.db import maybe_init_db, record_analysis
from .storage.store import RequestStore
from .utils.address import is_tx_hash, normalize_address
from .utils.logs import get_logger, setup_logging

SERVICE_NAME = "EVM Risk Analyzer"

log = get_logger(__name__)


class AnalyzeWalletBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    wallet_address: str | None = Field(None, alias="walletAddress")
    chain_id: int | None = Field(None, alias="chainId")
    payment_tx_hash: str | None = Field(None, alias="paymentTxHash")


class PaymentConfirmedBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    request_id: str | None = Field(None, alias="requestId")
    wallet_address: str | None = Field(None, alias="walletAddress")
    tx_hash: str | None = Field(None, alias="txHash")
    chain_id: int | None = Field(None, alias="chainId")


def _wallet_or_400(value: str | None) -> str:
    if not value:
        raise HTTPException(400, detail="walletAddress is required")
    try:
        return normalize_address(value)
    except ValueError as e:
        raise HTTPException(400, detail=str(e))


def create_app(providers: dict[int, EvmRpcClient] | None = None,
               store: RequestStore | None = None,
               audit_enabled: bool | None = None,
               audit_db_url: str | None = None) -> FastAPI:
    setup_logging(config.LOG_LEVEL, config.LOG_FORMAT)

    if providers is None:
        providers = config.build_providers()
    if audit_enabled is None:
        audit_enabled = config.AUDIT_ENABLED
    audit_on = maybe_init_db(audit_enabled, audit_db_url or config.AUDIT_DB_URL)

    gateway = ChainGateway(providers, lookback_blocks=config.LOOKBACK_BLOCKS)
    classifier = TransactionClassifier(gateway, max_transactions=config.ANALYSIS_TX_LIMIT,
                                       large_transfer_threshold=config.LARGE_TRANSFER_THRESHOLD)
    store = store if store is not None else RequestStore(config.STORE_TTL_MINUTES, config.STORE_MAX_ENTRIES)
    orchestrator = AnalysisOrchestrator(
        gateway, classifier, store,
        max_concurrent=config.MAX_CONCURRENT_ANALYSES,
        dedup_window_seconds=config.DEDUP_WINDOW_SECONDS,
        on_result=record_analysis if audit_on else None,
    )
    bridge = PaymentBridge(gateway, orchestrator)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if gateway.connected:
            log.info("service_started", mode="FULL", chains=sorted(gateway.providers))
        else:
            # sin API key el servicio arranca igual, solo /health es útil
            log.warning("service_started", mode="LIMITED",
                        hint="add ALCHEMY_API_KEY to .env for blockchain access")
        yield
        await orchestrator.shutdown()

    app = FastAPI(title="EVM Risk API", version="0.1", lifespan=lifespan)
    app.state.gateway = gateway
    app.state.store = store
    app.state.orchestrator = orchestrator

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.api_route("/health", methods=["GET", "HEAD"])
    async def health(request: Request):
        if request.method == "HEAD":
            return Response(status_code=200)
        connected = gateway.connected
        return {
            "status": "FULL" if connected else "LIMITED",
            "blockchainConnected": connected,
            "service": SERVICE_NAME,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "message": "Ready for real analysis" if connected else "Add ALCHEMY_API_KEY for blockchain access",
        }

    @app.post("/api/analyze-wallet")
    async def analyze_wallet(body: AnalyzeWalletBody):
        wallet = _wallet_or_400(body.wallet_address)
        chain_id = body.chain_id or config.DEFAULT_CHAIN_ID
        try:
            request_id = orchestrator.submit(wallet, chain_id, body.payment_tx_hash)
        except ProviderUnavailable as e:
            raise HTTPException(503, detail=str(e))
        return {"requestId": request_id, "status": "analyzing", "message": "Blockchain analysis started"}

    @app.get("/api/analysis/{request_id}")
    async def get_analysis(request_id: str):
        result = store.get(request_id)
        if result is None:
            raise HTTPException(404, detail="Analysis not found or still in progress")
        return result.to_dict()

    @app.post("/api/payment-confirmed")
    async def payment_confirmed(body: PaymentConfirmedBody):
        if not gateway.connected:
            raise HTTPException(503, detail=str(ProviderUnavailable()))
        wallet = _wallet_or_400(body.wallet_address)
        if not is_tx_hash(body.tx_hash):
            raise HTTPException(400, detail="txHash must be a 0x-prefixed 32-byte hash")
        chain_id = body.chain_id or config.DEFAULT_CHAIN_ID
        try:
            request_id = await bridge.confirm_and_analyze(body.request_id, wallet, body.tx_hash.strip(), chain_id)
        except PaymentNotConfirmed as e:
            raise HTTPException(400, detail=str(e))
        except (ProviderUnavailable, GatewayError) as e:
            raise HTTPException(503, detail=str(e))
        return {"success": True, "requestId": request_id,
                "message": "Payment confirmed and analysis started"}

    @app.get("/api/report/{request_id}")
    async def report(request_id: str):
        result = store.get(request_id)
        if result is None:
            raise HTTPException(404, detail="Analysis not found or still in progress")
        fd, path = mkstemp(suffix=".pdf")
        os.close(fd)
        build_pdf(result.to_dict(), path)
        return FileResponse(path, media_type="application/pdf",
                            filename=f"evm-risk-{result.wallet}.pdf",
                            background=BackgroundTask(os.unlink, path))

    return app


app = create_app()


def run() -> None:
    import uvicorn
    uvicorn.run(app, host=config.HOST, port=config.PORT)


if __name__ == "__main__":
    run()
