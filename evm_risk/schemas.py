from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class FlagType(str, Enum):
    LARGE_TRANSFER = "LARGE_TRANSFER"
    CONTRACT_INTERACTION = "CONTRACT_INTERACTION"
    HIGH_RISK_APPROVAL = "HIGH_RISK_APPROVAL"
    SUSPICIOUS_TRANSFER = "SUSPICIOUS_TRANSFER"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AnalysisStatus(str, Enum):
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


@dataclass(frozen=True)
class AnalysisRequest:
    request_id: str
    wallet_address: str
    chain_id: int
    payment_tx_hash: str | None = None
    created_at: str = field(default_factory=utcnow_iso)


@dataclass(frozen=True)
class TransactionLog:
    tx_hash: str
    from_address: str
    to_address: str | None
    value: int
    data: str
    topics: tuple[str, ...]
    block_number: int


@dataclass(frozen=True)
class BlockRange:
    from_block: int
    to_block: int

    def to_dict(self) -> dict:
        return {"from_block": self.from_block, "to_block": self.to_block}


@dataclass(frozen=True)
class WalletActivity:
    chain_id: int
    outbound_logs: tuple[TransactionLog, ...]
    inbound_transfers: tuple[TransactionLog, ...]
    block_range: BlockRange


@dataclass(frozen=True)
class Evidence:
    tx_hash: str
    from_address: str | None
    to_address: str | None
    value: str | None = None
    method: str | None = None
    timestamp: str = field(default_factory=utcnow_iso)

    def to_dict(self) -> dict:
        out = {"tx_hash": self.tx_hash, "from": self.from_address, "to": self.to_address,
               "timestamp": self.timestamp}
        if self.value is not None:
            out["value"] = self.value
        if self.method is not None:
            out["method"] = self.method
        return out


@dataclass(frozen=True)
class RiskFlag:
    type: FlagType
    risk: int
    severity: Severity
    title: str
    description: str
    evidence: Evidence

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "risk": self.risk,
            "severity": self.severity.value,
            "title": self.title,
            "description": self.description,
            "evidence": self.evidence.to_dict(),
        }


@dataclass(frozen=True)
class ClassificationResult:
    risk_score: int
    flags: tuple[RiskFlag, ...]
    transaction_count: int
    analyzed_count: int
    skipped_count: int = 0


@dataclass(frozen=True)
class AnalysisResult:
    request_id: str
    wallet: str
    chain_id: int
    status: AnalysisStatus
    risk_score: int
    risk_level: str
    summary: str
    flags: tuple[RiskFlag, ...] = ()
    payment_tx_hash: str | None = None
    transaction_count: int = 0
    analyzed_count: int = 0
    transaction_data: dict[str, Any] | None = None
    error: str | None = None
    timestamp: str = field(default_factory=utcnow_iso)

    @property
    def failed(self) -> bool:
        return self.status is AnalysisStatus.FAILED

    def to_dict(self) -> dict:
        return {
            "request_id": self.request_id,
            "wallet": self.wallet,
            "chain_id": self.chain_id,
            "payment_tx_hash": self.payment_tx_hash,
            "timestamp": self.timestamp,
            "status": self.status.value,
            "risk_score": self.risk_score,
            "risk_level": self.risk_level,
            "summary": self.summary,
            "flags": [f.to_dict() for f in self.flags],
            "transaction_count": self.transaction_count,
            "analyzed_count": self.analyzed_count,
            "transaction_data": self.transaction_data,
            "error": self.error,
        }
