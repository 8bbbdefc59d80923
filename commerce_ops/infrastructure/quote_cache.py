from threading import Lock

from cachetools import TTLCache


class ShippingQuoteCache:
    """Remembers which shipment ids were issued for which order, for a limited time.

    Rate quotes live on the provider side and expire there; a shipment id that
    has fallen out of this cache is treated as stale and must be re-quoted.
    """

    def __init__(self, ttl_seconds: int = 900, maxsize: int = 4096):
        self._cache = TTLCache(maxsize=maxsize, ttl=ttl_seconds)
        self._lock = Lock()

    def remember(self, shipment_id: str, order_id: int) -> None:
        with self._lock:
            self._cache[shipment_id] = order_id

    def is_current(self, shipment_id: str, order_id: int) -> bool:
        with self._lock:
            return self._cache.get(shipment_id) == order_id

    def forget(self, shipment_id: str) -> None:
        with self._lock:
            self._cache.pop(shipment_id, None)
