import json

import pytest

from shuttle_sms.core.config import settings
from shuttle_sms.core.models import DispatchResult, DispatchStatus, ErrorType
from shuttle_sms.database.log_store import JsonFileLogStore, get_log_store
from shuttle_sms.database.sql_log_store import SqlLogStore


def _entry(index, status=DispatchStatus.SUCCESS, error_type=None, **overrides):
    fields = {
        "line_index": index,
        "timestamp": f"2024-12-20T08:00:0{index}.000Z",
        "phone": "0912345678",
        "message": f"message {index}",
        "status": status,
        "error_type": error_type,
        "error_code": "000" if status == DispatchStatus.SUCCESS else "PARSE_ERROR",
        "error_message": "Gui tin thanh cong",
    }
    fields.update(overrides)
    return DispatchResult(**fields)


# ---------------------------------------------------------------
# JSON file backend
# ---------------------------------------------------------------
class TestJsonFileLogStore:
    def test_missing_file_reads_as_empty(self, tmp_path):
        store = JsonFileLogStore(str(tmp_path / "missing.json"))
        assert store.read_all() == []

    def test_ensure_exists_creates_empty_array(self, tmp_path):
        path = tmp_path / "logs" / "sms-log.json"
        store = JsonFileLogStore(str(path))
        store.ensure_exists()
        assert json.loads(path.read_text(encoding="utf-8")) == []

    def test_ensure_exists_keeps_existing_entries(self, log_store, log_path):
        log_store.append(_entry(1))
        log_store.ensure_exists()
        assert len(log_store.read_all()) == 1

    def test_read_all_returns_most_recent_first(self, log_store):
        entries = [_entry(i) for i in range(1, 6)]
        for entry in entries:
            log_store.append(entry)
        assert log_store.read_all() == list(reversed(entries))

    def test_file_layout_is_a_camel_case_json_array(self, log_store, log_path):
        log_store.append(_entry(1, status=DispatchStatus.FAILED, error_type=ErrorType.PARSE_ERROR,
                                message="", phone="Sài Gòn 14"))

        data = json.loads(log_path.read_text(encoding="utf-8"))
        assert data == [{
            "lineIndex": 1,
            "timestamp": "2024-12-20T08:00:01.000Z",
            "phone": "Sài Gòn 14",
            "message": "",
            "status": "FAILED",
            "errorType": "PARSE_ERROR",
            "errorCode": "PARSE_ERROR",
            "errorMessage": "Gui tin thanh cong",
        }]
        assert log_path.read_bytes().isascii()

    def test_unencodable_entry_keeps_earlier_entries(self, log_store, log_path):
        log_store.append(_entry(1))
        log_store.append(_entry(2))
        log_store.append(_entry(3, phone="0911111111 Sai Gon \ud800 14"))

        entries = log_store.read_all()
        assert [e.line_index for e in entries] == [3, 2, 1]
        assert entries[0].phone == "0911111111 Sai Gon \ud800 14"

    def test_failed_write_leaves_the_log_untouched(self, log_store, log_path, monkeypatch):
        from shuttle_sms.database import log_store as log_store_module

        log_store.append(_entry(1))
        before = log_path.read_bytes()

        def failing_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr(log_store_module.os, "replace", failing_replace)
        with pytest.raises(OSError):
            log_store.append(_entry(2))

        assert log_path.read_bytes() == before
        assert list(log_path.parent.glob("*.tmp")) == []
        assert [e.line_index for e in log_store.read_all()] == [1]

    def test_unparsable_file_is_treated_as_empty(self, log_store, log_path):
        log_path.write_text("{not json", encoding="utf-8")
        assert log_store.read_all() == []

        log_store.append(_entry(1))
        assert [e.line_index for e in log_store.read_all()] == [1]

    def test_non_array_file_is_treated_as_empty(self, log_store, log_path):
        log_path.write_text('{"lineIndex": 1}', encoding="utf-8")
        assert log_store.read_all() == []

    def test_malformed_entries_are_skipped(self, log_store, log_path):
        log_path.write_text(json.dumps([
            {"lineIndex": 1, "timestamp": "t", "status": "SUCCESS"},
            {"time": "legacy", "phone": "0912345678"},
        ]), encoding="utf-8")
        entries = log_store.read_all()
        assert len(entries) == 1
        assert entries[0].status == "SUCCESS"


# ---------------------------------------------------------------
# SQL backend
# ---------------------------------------------------------------
class TestSqlLogStore:
    @pytest.fixture
    def sql_store(self, tmp_path):
        store = SqlLogStore(f"sqlite:///{tmp_path / 'sms-log.db'}")
        store.ensure_exists()
        yield store
        store.close()

    def test_empty(self, sql_store):
        assert sql_store.read_all() == []

    def test_read_all_returns_most_recent_first(self, sql_store):
        entries = [
            _entry(1),
            _entry(2, status=DispatchStatus.FAILED, error_type=ErrorType.NETWORK_ERROR,
                   error_code="NETWORK", error_message="Loi mang hoac ket noi API"),
            _entry(3, phone="Đà Lạt"),
        ]
        for entry in entries:
            sql_store.append(entry)
        assert sql_store.read_all() == list(reversed(entries))


class TestGetLogStore:
    def test_json_backend(self, monkeypatch, tmp_path):
        monkeypatch.setattr(settings, "LOG_FILE", str(tmp_path / "x.json"))
        store = get_log_store("json")
        assert isinstance(store, JsonFileLogStore)
        assert store.path == tmp_path / "x.json"

    def test_sql_backend(self, monkeypatch, tmp_path):
        monkeypatch.setattr(settings, "LOG_DATABASE_URL", f"sqlite:///{tmp_path / 'x.db'}")
        store = get_log_store("SQL")
        assert isinstance(store, SqlLogStore)
        store.close()

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            get_log_store("redis")
