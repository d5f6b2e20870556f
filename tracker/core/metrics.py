from collections import Counter
from threading import Lock


class MetricsStore:
    def __init__(self) -> None:
        self._lock = Lock()
        self._total_requests = 0
        self._total_errors = 0
        self._by_status: Counter[str] = Counter()
        self._cascade_runs: Counter[str] = Counter()
        self._cascade_deleted: Counter[str] = Counter()

    def record(self, status_code: int) -> None:
        with self._lock:
            self._total_requests += 1
            self._by_status[str(status_code)] += 1
            if status_code >= 500:
                self._total_errors += 1

    def record_cascade(self, kind: str, removed: dict[str, int]) -> None:
        with self._lock:
            self._cascade_runs[kind] += 1
            for collection, count in removed.items():
                if count:
                    self._cascade_deleted[collection] += count

    def snapshot(self) -> dict[str, object]:
        with self._lock:
            return {
                "total_requests": self._total_requests,
                "total_errors": self._total_errors,
                "by_status": dict(self._by_status),
                "cascades": dict(self._cascade_runs),
                "cascade_deleted": dict(self._cascade_deleted),
            }


metrics = MetricsStore()
