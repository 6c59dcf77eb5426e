import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PendingCall:
    call_id: str
    customer_name: str = ""
    customer_phone: str = ""
    asset_model: str = ""
    asset_id: str = ""
    service_type: str = ""
    due_date: str = ""

    @classmethod
    def from_payload(cls, call_id: str, data: dict) -> "PendingCall":
        """Accept both snake_case and the dialer's camelCase keys."""

        def pick(*keys: str) -> str:
            for key in keys:
                value = data.get(key)
                if value:
                    return str(value).strip()
            return ""

        return cls(
            call_id=call_id,
            customer_name=pick("customer_name", "customerName"),
            customer_phone=pick("customer_phone", "customerPhone"),
            asset_model=pick("asset_model", "assetModel", "machineModel"),
            asset_id=pick("asset_id", "assetId", "machineNumber"),
            service_type=pick("service_type", "serviceType"),
            due_date=pick("due_date", "dueDate"),
        )


class PendingCallDirectory:
    """Customer records registered by the dialer before a call connects.

    Each record is consumed once, when the call starts.
    """

    def __init__(self, store: dict | None = None):
        self._store = store if store is not None else {}

    def register(self, call_id: str, data: dict) -> PendingCall:
        pending = PendingCall.from_payload(call_id, data)
        self._store[call_id] = pending
        logger.info("Pending call registered: %s (%s)", call_id, pending.customer_name or "unnamed")
        return pending

    def pop(self, call_id: str) -> PendingCall | None:
        return self._store.pop(call_id, None)

    def __contains__(self, call_id: str) -> bool:
        return call_id in self._store

    def __len__(self) -> int:
        return len(self._store)
