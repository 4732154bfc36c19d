from .errors import PaymentNotConfirmed
from .orchestrator import AnalysisOrchestrator
from .sources.gateway import ChainGateway
from .utils.address import hex_to_int
from .utils.logs import get_logger

log = get_logger(__name__)


class PaymentBridge:
    def __init__(self, gateway: ChainGateway, orchestrator: AnalysisOrchestrator):
        self.gateway = gateway
        self.orchestrator = orchestrator

    async def confirm_and_analyze(self, request_id: str, wallet_address: str, tx_hash: str,
                                  chain_id: int) -> str:
        """Verifica el recibo del pago y abre una solicitud de análisis nueva.

        El hash del pago se guarda solo como procedencia: repetir la confirmación
        crea otra solicitud independiente.
        """
        receipt = await self.gateway.get_transaction_receipt(chain_id, tx_hash)
        if not receipt or hex_to_int(receipt.get("status")) != 1:
            log.warning("payment_not_confirmed", tx_hash=tx_hash, chain_id=chain_id,
                        payment_request_id=request_id)
            raise PaymentNotConfirmed(tx_hash)

        log.info("payment_confirmed", tx_hash=tx_hash, wallet=wallet_address, chain_id=chain_id,
                 payment_request_id=request_id)
        return self.orchestrator.submit(wallet_address, chain_id, payment_tx_hash=tx_hash)
