"""Concurrency tests for lock-guarded TOML persistence.

Writers in several threads and processes repeatedly replace one document
while readers check that every read sees a complete document written by
exactly one writer.
"""

import multiprocessing
import threading
from pathlib import Path

from procprep.preparable import SourceWorkload
from procprep.registry import WorkloadRegistry
from procprep.utils import edit_toml_file, safe_read_toml_file, safe_write_toml_file

WRITERS = 8
ROUNDS = 25
# Large enough that a torn write would be visible
PAYLOAD_LINES = 200


def _document(marker: str) -> dict[str, object]:
    return {
        "marker": marker,
        "lines": [f"{marker}-{i}" for i in range(PAYLOAD_LINES)],
    }


def _assert_consistent(data: dict[str, object]) -> None:
    marker = data["marker"]
    assert isinstance(marker, str)
    assert data["lines"] == [f"{marker}-{i}" for i in range(PAYLOAD_LINES)]


def _write_rounds(path: Path, writer: int) -> None:
    for round_ in range(ROUNDS):
        safe_write_toml_file(_document(f"w{writer}r{round_}"), path)


def _increment(path: Path, times: int) -> None:
    for _ in range(times):
        with edit_toml_file(path) as data:
            data["count"] = int(data.get("count", 0)) + 1


class TestThreadedWrites:
    def test_readers_never_see_torn_documents(self, tmp_path: Path) -> None:
        path = tmp_path / "doc.toml"
        safe_write_toml_file(_document("initial"), path)
        errors: list[BaseException] = []
        done = threading.Event()

        def _reader() -> None:
            try:
                while not done.is_set():
                    _assert_consistent(safe_read_toml_file(path))
            except BaseException as e:  # noqa: BLE001
                errors.append(e)

        writers = [
            threading.Thread(target=_write_rounds, args=(path, n))
            for n in range(WRITERS)
        ]
        readers = [threading.Thread(target=_reader) for _ in range(2)]
        for thread in [*readers, *writers]:
            thread.start()
        for thread in writers:
            thread.join(timeout=60)
        done.set()
        for thread in readers:
            thread.join(timeout=60)

        assert errors == []
        final = safe_read_toml_file(path)
        _assert_consistent(final)
        assert str(final["marker"]).endswith(f"r{ROUNDS - 1}")

    def test_edits_are_not_lost(self, tmp_path: Path) -> None:
        path = tmp_path / "counter.toml"
        threads = [
            threading.Thread(target=_increment, args=(path, 20))
            for _ in range(WRITERS)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=60)

        assert safe_read_toml_file(path) == {"count": WRITERS * 20}


class TestMultiProcessWrites:
    def test_edits_across_processes_are_not_lost(self, tmp_path: Path) -> None:
        path = tmp_path / "counter.toml"
        context = multiprocessing.get_context("fork")
        workers = [
            context.Process(target=_increment, args=(path, 10)) for _ in range(4)
        ]
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join(timeout=60)

        assert [worker.exitcode for worker in workers] == [0, 0, 0, 0]
        assert safe_read_toml_file(path) == {"count": 40}

    def test_writes_across_processes_stay_whole(self, tmp_path: Path) -> None:
        path = tmp_path / "doc.toml"
        context = multiprocessing.get_context("fork")
        workers = [
            context.Process(target=_write_rounds, args=(path, n)) for n in range(4)
        ]
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join(timeout=60)

        assert [worker.exitcode for worker in workers] == [0, 0, 0, 0]
        _assert_consistent(safe_read_toml_file(path))


class TestConcurrentRegistration:
    def test_every_registration_survives(
        self, tmp_path: Path, sys_folder: Path
    ) -> None:
        registry = WorkloadRegistry(tmp_path / "registry.toml")

        def _register(index: int) -> None:
            registry.add(
                SourceWorkload(
                    name=f"svc{index}",
                    sys_folder=str(sys_folder),
                    source_path=f"/src/svc{index}",
                )
            )

        threads = [
            threading.Thread(target=_register, args=(n,)) for n in range(WRITERS)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=60)

        assert registry.names() == sorted(f"svc{n}" for n in range(WRITERS))
