import time
from collections import OrderedDict
from typing import Callable

from ..schemas import AnalysisResult
from ..utils.logs import get_logger

log = get_logger(__name__)


class RequestStore:
    """Resultados terminales por request_id, en memoria.

    Escritura única: una vez que un id tiene resultado no se sobrescribe.
    Ausente significa pendiente (o desconocido). Acotado por TTL y por tamaño.
    """

    def __init__(self, ttl_minutes: int = 120, max_entries: int = 10000,
                 clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_minutes * 60
        self.max_entries = max_entries
        self._clock = clock
        # orden de inserción == orden de expiración (TTL fijo)
        self._entries: OrderedDict[str, tuple[float, AnalysisResult]] = OrderedDict()

    def __len__(self) -> int:
        self._purge()
        return len(self._entries)

    def __contains__(self, request_id: str) -> bool:
        return self.get(request_id) is not None

    def _purge(self) -> None:
        if self.ttl_seconds <= 0:
            return
        now = self._clock()
        while self._entries:
            request_id, (stored_at, _) = next(iter(self._entries.items()))
            if now - stored_at <= self.ttl_seconds:
                break
            self._entries.popitem(last=False)
            log.debug("result_expired", request_id=request_id)

    def put(self, result: AnalysisResult) -> bool:
        self._purge()
        if result.request_id in self._entries:
            log.warning("result_already_stored", request_id=result.request_id)
            return False
        self._entries[result.request_id] = (self._clock(), result)
        while self.max_entries > 0 and len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            log.info("result_evicted", request_id=evicted)
        return True

    def get(self, request_id: str) -> AnalysisResult | None:
        self._purge()
        entry = self._entries.get(request_id)
        return entry[1] if entry else None
