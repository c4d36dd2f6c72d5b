# ledgerlink/token_store.py
"""
Where linked Plaid items (access tokens) live between requests.

``MemoryTokenStore`` is for development only: nothing survives a restart.
``JsonTokenStore`` keeps the same contract on disk.
"""
from __future__ import annotations

import json
import logging
import threading
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from ledgerlink.config import Settings

log = logging.getLogger(__name__)


@dataclass
class PlaidItem:
    item_id: str
    access_token: str
    user_id: str
    institution_name: Optional[str] = None
    institution_id: Optional[str] = None
    accounts: List[Dict[str, Any]] = field(default_factory=list)
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"))

    def account_ids(self) -> List[str]:
        return [str(a.get("account_id") or a.get("id")) for a in self.accounts if isinstance(a, dict)]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "PlaidItem":
        known = {k: d[k] for k in cls.__dataclass_fields__ if k in d}
        return cls(**known)


class MemoryTokenStore:
    def __init__(self):
        self._items: Dict[str, Dict[str, PlaidItem]] = {}
        self._lock = threading.Lock()

    def put(self, item: PlaidItem) -> PlaidItem:
        uid = str(item.user_id)
        with self._lock:
            bucket = self._items.setdefault(uid, {})
            previous = bucket.get(item.item_id)
            bucket[item.item_id] = item
            try:
                self._persist()
            except Exception:
                # memory must match what is on disk
                if previous is None:
                    del bucket[item.item_id]
                    if not bucket:
                        del self._items[uid]
                else:
                    bucket[item.item_id] = previous
                raise
        log.info("Stored Plaid item %s for user %s", item.item_id, item.user_id)
        return item

    def get(self, user_id: str, item_id: str) -> Optional[PlaidItem]:
        with self._lock:
            return self._items.get(str(user_id), {}).get(item_id)

    def list(self, user_id: str) -> List[PlaidItem]:
        with self._lock:
            return list(self._items.get(str(user_id), {}).values())

    def remove(self, user_id: str, item_id: str) -> bool:
        with self._lock:
            bucket = self._items.get(str(user_id), {})
            if item_id not in bucket:
                return False
            snapshot = dict(bucket)
            del bucket[item_id]
            try:
                self._persist()
            except Exception:
                bucket.clear()
                bucket.update(snapshot)
                raise
        return True

    def find_by_account(self, user_id: str, account_id: str) -> Optional[PlaidItem]:
        for item in self.list(user_id):
            if account_id in item.account_ids():
                return item
        return None

    def _persist(self) -> None:
        pass


class JsonTokenStore(MemoryTokenStore):
    def __init__(self, path: Path):
        super().__init__()
        self.path = Path(path)
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            return
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8")) or {}
        except (OSError, ValueError) as e:
            log.error("Could not read %s: %s", self.path, e)
            raise
        for user_id, items in (raw.get("users") or {}).items():
            self._items[user_id] = {i["item_id"]: PlaidItem.from_dict(i) for i in items}

    def _persist(self) -> None:
        # caller holds the lock
        data = {"users": {uid: [i.to_dict() for i in items.values()] for uid, items in self._items.items()}}
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(".tmp")
        tmp.write_text(json.dumps(data, indent=2, default=str), encoding="utf-8")
        tmp.replace(self.path)


def build_store(settings: Settings):
    if settings.token_store == "json":
        log.info("Token store: %s", settings.token_store_path)
        return JsonTokenStore(settings.token_store_path)
    return MemoryTokenStore()
