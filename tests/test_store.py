from evm_risk.schemas import AnalysisResult, AnalysisStatus
from evm_risk.storage.store import RequestStore


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def _result(request_id: str, score: int = 10) -> AnalysisResult:
    return AnalysisResult(request_id=request_id, wallet="0xw", chain_id=1, status=AnalysisStatus.COMPLETED,
                          risk_score=score, risk_level="Low", summary="")


def test_absent_is_none():
    assert RequestStore().get("0xmissing") is None


def test_write_once():
    store = RequestStore()
    assert store.put(_result("a", 10))
    assert not store.put(_result("a", 90))
    assert store.get("a").risk_score == 10
    assert len(store) == 1


def test_ttl_expiry():
    clock = FakeClock()
    store = RequestStore(ttl_minutes=1, clock=clock)
    store.put(_result("a"))
    clock.now += 30
    store.put(_result("b"))
    clock.now += 31
    assert store.get("a") is None
    assert "b" in store
    clock.now += 60
    assert len(store) == 0


def test_zero_ttl_keeps_forever():
    clock = FakeClock()
    store = RequestStore(ttl_minutes=0, clock=clock)
    store.put(_result("a"))
    clock.now += 10 ** 9
    assert "a" in store


def test_size_bound_evicts_oldest():
    store = RequestStore(max_entries=2)
    for rid in ("a", "b", "c"):
        store.put(_result(rid))
    assert store.get("a") is None
    assert store.get("b") is not None
    assert store.get("c") is not None
