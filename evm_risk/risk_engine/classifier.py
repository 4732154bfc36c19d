from decimal import Decimal

from ..errors import ClassificationError, GatewayError
from ..schemas import (ClassificationResult, Evidence, FlagType, RiskFlag, Severity,
                       WalletActivity)
from ..sources.gateway import ChainGateway
from ..utils.address import hex_to_int, shorten
from ..utils.logs import get_logger
from .core import aggregate, fmt_amount
from .weights import W

WEI_PER_UNIT = Decimal(10) ** 18

log = get_logger(__name__)


def wei_to_units(value) -> Decimal:
    return Decimal(hex_to_int(value)) / WEI_PER_UNIT


def has_call_data(data: str | None) -> bool:
    return bool(data) and data != "0x"


class TransactionClassifier:
    def __init__(self, gateway: ChainGateway, max_transactions: int = 20,
                 large_transfer_threshold: Decimal = Decimal("1.0")):
        self.gateway = gateway
        self.max_transactions = max_transactions
        self.large_transfer_threshold = Decimal(large_transfer_threshold)

    def inspect(self, tx: dict, symbol: str = "ETH") -> list[RiskFlag]:
        """Reglas independientes: una transacción puede disparar varias banderas."""
        flags = []
        tx_hash = tx.get("hash", "")
        sender = (tx.get("from") or "").lower() or None
        to = (tx.get("to") or "").lower() or None
        value = wei_to_units(tx.get("value"))

        if value > self.large_transfer_threshold:
            flags.append(RiskFlag(
                type=FlagType.LARGE_TRANSFER,
                risk=W.LARGE_TRANSFER,
                severity=Severity.MEDIUM,
                title="Large Value Transfer",
                description=f"Transfer of {fmt_amount(value)} {symbol} detected",
                evidence=Evidence(tx_hash=tx_hash, from_address=sender, to_address=to,
                                  value=format(value.normalize(), "f")),
            ))

        data = tx.get("input") or tx.get("data")
        if has_call_data(data):
            flags.append(RiskFlag(
                type=FlagType.CONTRACT_INTERACTION,
                risk=W.CONTRACT_INTERACTION,
                severity=Severity.MEDIUM,
                title="Contract Interaction",
                description=f"Interacted with contract: {shorten(to)}",
                evidence=Evidence(tx_hash=tx_hash, from_address=sender, to_address=to,
                                  method=data[:10]),
            ))
        return flags

    async def classify(self, wallet_address: str, activity: WalletActivity) -> ClassificationResult:
        """Clasifica las primeras ``max_transactions`` salidas de la ventana.

        Una transacción que no se puede obtener o interpretar se omite y el
        lote continúa. Si fallan todas las del lote se lanza
        ``ClassificationError`` y la solicitud termina en FAILED.
        """
        outbound = activity.outbound_logs
        batch = outbound[: self.max_transactions]
        symbol = self.gateway.client_for(activity.chain_id).symbol

        flags: list[RiskFlag] = []
        skipped = 0
        last_error = None
        for entry in batch:
            try:
                tx = await self.gateway.get_transaction(activity.chain_id, entry.tx_hash)
                if tx is None:
                    skipped += 1
                    log.warning("transaction_not_found", wallet=wallet_address, tx_hash=entry.tx_hash)
                    continue
                flags.extend(self.inspect(tx, symbol))
            except (GatewayError, ValueError, ArithmeticError, AttributeError, TypeError) as e:
                skipped += 1
                last_error = e
                log.warning("transaction_skipped", wallet=wallet_address, tx_hash=entry.tx_hash,
                            error=str(e), error_type=type(e).__name__)

        if batch and skipped == len(batch):
            raise ClassificationError(
                f"Could not analyze any of the {len(batch)} transactions selected for analysis"
            ) from last_error

        return ClassificationResult(
            risk_score=aggregate(flags),
            flags=tuple(flags),
            transaction_count=len(outbound),
            analyzed_count=len(batch),
            skipped_count=skipped,
        )
