import json
from pathlib import Path

import pytest

from ledgerlink.config import Settings
from ledgerlink.token_store import JsonTokenStore, MemoryTokenStore, PlaidItem, build_store


def _item(item_id="item-1", user_id="u1", accounts=None):
    return PlaidItem(
        item_id=item_id,
        access_token=f"access-{item_id}",
        user_id=user_id,
        institution_name="Chase",
        accounts=accounts if accounts is not None else [{"account_id": f"{item_id}-chk"}],
    )


def test_memory_store_is_scoped_per_user():
    store = MemoryTokenStore()
    store.put(_item("a", "u1"))
    store.put(_item("b", "u2"))

    assert [i.item_id for i in store.list("u1")] == ["a"]
    assert store.get("u1", "b") is None
    assert store.get("u2", "b").access_token == "access-b"
    assert store.list("nobody") == []


def test_put_replaces_same_item():
    store = MemoryTokenStore()
    store.put(_item("a"))
    store.put(PlaidItem(item_id="a", access_token="rotated", user_id="u1"))
    assert [i.access_token for i in store.list("u1")] == ["rotated"]


def test_find_by_account_and_remove():
    store = MemoryTokenStore()
    store.put(_item("a", accounts=[{"account_id": "chk"}, {"id": "sav"}]))

    assert store.find_by_account("u1", "sav").item_id == "a"
    assert store.find_by_account("u1", "missing") is None
    assert store.remove("u1", "a") is True
    assert store.remove("u1", "a") is False
    assert store.list("u1") == []


def test_plaid_item_dict_round_trip_ignores_unknown_keys():
    item = _item()
    data = item.to_dict()
    data["legacy_field"] = True
    assert PlaidItem.from_dict(data) == item


def test_json_store_survives_reopen(tmp_path):
    path = tmp_path / "state" / "items.json"
    store = JsonTokenStore(path)
    store.put(_item("a"))
    store.put(_item("b"))
    store.remove("u1", "b")

    on_disk = json.loads(path.read_text(encoding="utf-8"))
    assert [i["item_id"] for i in on_disk["users"]["u1"]] == ["a"]
    assert not path.with_suffix(".tmp").exists()

    reopened = JsonTokenStore(path)
    assert reopened.list("u1") == store.list("u1")
    assert reopened.find_by_account("u1", "a-chk").access_token == "access-a"


def test_failed_write_leaves_memory_unchanged(tmp_path, monkeypatch):
    path = tmp_path / "items.json"
    store = JsonTokenStore(path)
    store.put(_item("a"))

    def disk_full(self, *args, **kwargs):
        raise OSError(28, "No space left on device")

    monkeypatch.setattr(Path, "write_text", disk_full)

    with pytest.raises(OSError):
        store.put(_item("b"))
    with pytest.raises(OSError):
        store.put(_item("fresh", user_id="u9"))
    with pytest.raises(OSError):
        store.put(PlaidItem(item_id="a", access_token="rotated", user_id="u1"))
    with pytest.raises(OSError):
        store.remove("u1", "a")

    assert [(i.item_id, i.access_token) for i in store.list("u1")] == [("a", "access-a")]
    assert store.list("u9") == []

    monkeypatch.undo()
    assert [i.item_id for i in JsonTokenStore(path).list("u1")] == ["a"]


def test_json_store_refuses_corrupt_file(tmp_path):
    path = tmp_path / "items.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError):
        JsonTokenStore(path)


def test_build_store_from_settings(tmp_path):
    assert type(build_store(Settings())) is MemoryTokenStore
    store = build_store(Settings(token_store="json", token_store_path=tmp_path / "x.json"))
    assert isinstance(store, JsonTokenStore)
    assert store.path == tmp_path / "x.json"
