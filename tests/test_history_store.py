import json

from conftest import make_image

from risk_ai.schemas.assessment import AssessmentRecord
from risk_ai.services.history_store import HistoryStore
from risk_ai.services.imaging import to_data_url


def make_record(record_id, timestamp=1_700_000_000_000, title="record"):
    return AssessmentRecord(
        id=record_id,
        timestamp=timestamp,
        image_name=f"{record_id}.png",
        image_data=to_data_url(make_image(8, 8), "image/png"),
        title=title,
        hazards=[],
    )


def test_missing_file_is_empty_history(tmp_path):
    store = HistoryStore(tmp_path / "nothing.json")
    assert store.list_all() == []
    assert store.get("x") is None


def test_upsert_lists_most_recent_first(tmp_path):
    store = HistoryStore(tmp_path / "h.json")
    store.upsert(make_record("a", 1))
    store.upsert(make_record("b", 2))
    store.upsert(make_record("c", 3))
    assert [r.id for r in store.list_all()] == ["c", "b", "a"]


def test_upsert_same_id_keeps_one_entry_with_latest_content(tmp_path):
    store = HistoryStore(tmp_path / "h.json")
    store.upsert(make_record("a", title="first"))
    store.upsert(make_record("a", title="second"))

    records = store.list_all()
    assert len(records) == 1
    assert records[0].title == "second"


def test_delete_preserves_order_of_remainder(tmp_path):
    store = HistoryStore(tmp_path / "h.json")
    for record_id in ("c", "b", "a"):
        store.upsert(make_record(record_id))
    assert [r.id for r in store.list_all()] == ["a", "b", "c"]

    assert store.delete("b") is True
    assert [r.id for r in store.list_all()] == ["a", "c"]
    assert store.delete("b") is False


def test_history_survives_a_new_store_instance(tmp_path):
    path = tmp_path / "h.json"
    HistoryStore(path).upsert(make_record("a"))

    reloaded = HistoryStore(path).get("a")
    assert reloaded is not None
    assert reloaded.image_name == "a.png"


def test_collection_is_stored_under_one_key(tmp_path):
    path = tmp_path / "h.json"
    store = HistoryStore(path, key="riskHistory")
    store.upsert(make_record("a"))

    payload = json.loads(path.read_text(encoding="utf-8"))
    assert list(payload) == ["riskHistory"]
    assert payload["riskHistory"][0]["id"] == "a"


def test_corrupt_file_reads_as_empty(tmp_path):
    path = tmp_path / "h.json"
    path.write_text("{not json", encoding="utf-8")
    store = HistoryStore(path)
    assert store.list_all() == []

    store.upsert(make_record("a"))
    assert [r.id for r in store.list_all()] == ["a"]


def test_clear_removes_everything(tmp_path):
    store = HistoryStore(tmp_path / "h.json")
    store.upsert(make_record("a"))
    store.clear()
    assert store.list_all() == []


def test_undecodable_file_reads_as_empty(tmp_path):
    path = tmp_path / "h.json"
    path.write_bytes(b"\xff\xfe{not utf8")
    store = HistoryStore(path)

    assert store.list_all() == []
    assert store.get("a") is None
    store.upsert(make_record("a"))
    assert [r.id for r in store.list_all()] == ["a"]


def test_unreadable_file_is_kept_aside_before_rewrite(tmp_path):
    path = tmp_path / "h.json"
    original = '{"assessment_history": [{"id": "old", "broken": true}]}'
    path.write_text(original, encoding="utf-8")
    store = HistoryStore(path)

    store.upsert(make_record("new"))

    assert [r.id for r in store.list_all()] == ["new"]
    assert store.corrupt_path == tmp_path / "h.json.corrupt"
    assert store.corrupt_path.read_text(encoding="utf-8") == original
