from evm_risk.schemas import AnalysisResult, AnalysisStatus
from evm_risk.storage import db
from evm_risk.storage.models import Analysis


def test_disabled_is_noop():
    assert db.maybe_init_db(False) is False


def test_record_terminal_result(tmp_path):
    assert db.maybe_init_db(True, f"sqlite:///{tmp_path / 'audit.db'}")
    result = AnalysisResult(request_id="0x01", wallet="0x" + "ab" * 20, chain_id=11155111,
                            status=AnalysisStatus.FAILED, risk_score=0, risk_level="Low",
                            summary="Analysis failed.", error="boom")
    db.record_analysis(result)

    with db.SessionLocal() as session:
        rows = session.query(Analysis).all()
    assert len(rows) == 1
    assert rows[0].request_id == "0x01"
    assert rows[0].status == "FAILED"
    assert rows[0].error == "boom"
    assert rows[0].flags == []
