from storage import (
    FileSystemLevelProvider,
    FileSystemSolutionStore,
    MemoryLevelProvider,
    MemorySolutionStore,
)


def test_filesystem_levels(tmp_path):
    (tmp_path / "level1.txt").write_text("u.o\n", encoding="utf-8")
    provider = FileSystemLevelProvider(tmp_path)
    assert provider.get("level1") == "u.o\n"
    assert provider.get("level2") is None


def test_memory_levels():
    provider = MemoryLevelProvider({"level1": "u"})
    assert provider.get("level1") == "u"
    assert provider.get("nope") is None


def test_filesystem_solutions_round_trip(tmp_path):
    store = FileSystemSolutionStore(tmp_path / "saves")
    assert store.get("level3") == ""
    store.put("level3", "f(A):sf(A-1)\nf(4)")
    assert store.get("level3") == "f(A):sf(A-1)\nf(4)"
    assert (tmp_path / "saves" / "level3_solution.txt").exists()


def test_memory_solutions_are_per_level():
    store = MemorySolutionStore({"level1": "ss"})
    store.put("level2", "rr")
    assert store.get("level1") == "ss"
    assert store.get("level2") == "rr"
    assert store.get("level3") == ""
