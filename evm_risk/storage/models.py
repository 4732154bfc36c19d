from sqlalchemy import Column, Integer, String, DateTime, JSON, func
from .db import Base


class Analysis(Base):
    __tablename__ = "analyses"
    id = Column(Integer, primary_key=True, index=True)
    request_id = Column(String, unique=True, index=True)
    wallet = Column(String, index=True)
    chain_id = Column(Integer)
    payment_tx_hash = Column(String, nullable=True)
    status = Column(String)
    risk_score = Column(Integer)
    risk_level = Column(String)
    flags = Column(JSON)
    error = Column(String, nullable=True)
    completed_at = Column(String)
    created_at = Column(DateTime, server_default=func.now())

    @classmethod
    def from_result(cls, result) -> "Analysis":
        return cls(
            request_id=result.request_id,
            wallet=result.wallet,
            chain_id=result.chain_id,
            payment_tx_hash=result.payment_tx_hash,
            status=result.status.value,
            risk_score=result.risk_score,
            risk_level=result.risk_level,
            flags=[f.to_dict() for f in result.flags],
            error=result.error,
            completed_at=result.timestamp,
        )
