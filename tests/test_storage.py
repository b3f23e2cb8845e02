"""
Tests for record persistence and the rig lock.
"""

import json
import threading
import time
from unittest.mock import patch

import pytest

from rigswarm.errors import LockTimeoutError, PersistenceError
from rigswarm.storage import RigLock, read_json, temp_path_for, write_json_atomic


class TestWriteJsonAtomic:

    def test_writes_pretty_json(self, tmp_path):
        target = tmp_path / "state.json"

        write_json_atomic(target, {"name": "rex", "state": "idle"})

        text = target.read_text()
        assert json.loads(text) == {"name": "rex", "state": "idle"}
        assert '\n  "name": "rex"' in text

    def test_replaces_existing_file(self, tmp_path):
        target = tmp_path / "state.json"
        target.write_text('{"state": "idle"}')

        write_json_atomic(target, {"state": "working"})

        assert json.loads(target.read_text()) == {"state": "working"}

    def test_leaves_no_temp_file(self, tmp_path):
        target = tmp_path / "state.json"

        write_json_atomic(target, {"a": 1})

        assert [p.name for p in tmp_path.iterdir()] == ["state.json"]

    def test_unserializable_data(self, tmp_path):
        target = tmp_path / "state.json"

        with pytest.raises(PersistenceError):
            write_json_atomic(target, {"when": object()})

        assert not target.exists()

    def test_missing_directory(self, tmp_path):
        with pytest.raises(PersistenceError):
            write_json_atomic(tmp_path / "gone" / "state.json", {"a": 1})

    def test_failed_rename_keeps_old_content(self, tmp_path):
        target = tmp_path / "state.json"
        target.write_text('{"state": "idle"}')

        with patch("pathlib.Path.replace", side_effect=OSError("rename failed")):
            with pytest.raises(PersistenceError):
                write_json_atomic(target, {"state": "working"})

        assert json.loads(target.read_text()) == {"state": "idle"}
        assert not temp_path_for(target).exists()


class TestReadJson:

    def test_missing_file(self, tmp_path):
        assert read_json(tmp_path / "state.json") is None

    def test_reads_mapping(self, tmp_path):
        target = tmp_path / "state.json"
        target.write_text('{"name": "rex"}')

        assert read_json(target) == {"name": "rex"}

    def test_malformed_json(self, tmp_path):
        target = tmp_path / "state.json"
        target.write_text("{oops")

        with pytest.raises(PersistenceError):
            read_json(target)

    def test_non_object(self, tmp_path):
        target = tmp_path / "state.json"
        target.write_text("[1, 2]")

        with pytest.raises(PersistenceError):
            read_json(target)

    def test_invalid_utf8(self, tmp_path):
        target = tmp_path / "state.json"
        target.write_bytes(b"\xff\xfe")

        with pytest.raises(PersistenceError, match="Cannot decode"):
            read_json(target)

    def test_non_ascii_round_trip(self, tmp_path):
        target = tmp_path / "state.json"
        write_json_atomic(target, {"issue": "ISSUE-\u00e9"})

        assert read_json(target) == {"issue": "ISSUE-\u00e9"}

    def test_directory_instead_of_file(self, tmp_path):
        (tmp_path / "state.json").mkdir()

        with pytest.raises(PersistenceError):
            read_json(tmp_path / "state.json")


class TestRigLock:

    def test_creates_root_and_lock_file(self, tmp_path):
        root = tmp_path / "polecats"

        with RigLock(root) as lock:
            assert lock.is_locked
            assert (root / ".swarm.lock").exists()

    def test_reentrant(self, tmp_path):
        lock = RigLock(tmp_path)

        with lock:
            with lock:
                assert lock.is_locked
            assert lock.is_locked

    def test_timeout_when_held_elsewhere(self, tmp_path):
        holder = RigLock(tmp_path)
        waiter = RigLock(tmp_path, timeout=0.1)
        acquired = threading.Event()
        release = threading.Event()

        def hold():
            with holder:
                acquired.set()
                release.wait(5)

        thread = threading.Thread(target=hold)
        thread.start()
        try:
            assert acquired.wait(5)
            with pytest.raises(LockTimeoutError):
                waiter.acquire()
        finally:
            release.set()
            thread.join()

    def test_serializes_threads(self, tmp_path):
        lock = RigLock(tmp_path)
        inside = []
        overlaps = []

        def work():
            with lock:
                if inside:
                    overlaps.append(True)
                inside.append(True)
                time.sleep(0.01)
                inside.pop()

        threads = [threading.Thread(target=work) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert overlaps == []
