import pytest

from ariachain.block_storage import FileBlockStorage, MemoryBlockStorage


def test_memory_starts_at_epoch_zero():
    assert MemoryBlockStorage().latest_saved_epoch() == 0


def test_memory_round_trip():
    storage = MemoryBlockStorage()
    storage.append_block(1, b"first")
    storage.append_block(2, b"second")
    assert storage.load_block(1) == b"first"
    assert storage.load_block(2) == b"second"
    assert storage.latest_saved_epoch() == 2


def test_memory_load_beyond_latest_raises():
    storage = MemoryBlockStorage()
    storage.append_block(1, b"x")
    with pytest.raises(KeyError):
        storage.load_block(2)


def test_memory_load_gap_raises():
    storage = MemoryBlockStorage()
    storage.append_block(3, b"x")
    with pytest.raises(KeyError):
        storage.load_block(2)


def test_file_round_trip(tmp_path):
    storage = FileBlockStorage(tmp_path)
    storage.append_block(1, b"\x00\x01block")
    assert storage.load_block(1) == b"\x00\x01block"
    assert (tmp_path / "1.bin").read_bytes() == b"\x00\x01block"


def test_file_persists_latest_epoch(tmp_path):
    storage = FileBlockStorage(tmp_path)
    storage.append_block(1, b"a")
    storage.append_block(2, b"b")
    assert (tmp_path / "block_num.txt").read_text() == "2"
    reopened = FileBlockStorage(tmp_path)
    assert reopened.latest_saved_epoch() == 2
    assert reopened.load_block(2) == b"b"


def test_file_reset_epoch(tmp_path):
    storage = FileBlockStorage(tmp_path)
    storage.append_block(1, b"a")
    reset = FileBlockStorage(tmp_path, reset_epoch=True)
    assert reset.latest_saved_epoch() == 0
    assert (tmp_path / "block_num.txt").read_text() == "0"
    with pytest.raises(KeyError):
        reset.load_block(1)


def test_file_missing_block_raises(tmp_path):
    storage = FileBlockStorage(tmp_path)
    storage.append_block(2, b"b")
    with pytest.raises(KeyError):
        storage.load_block(1)


def test_file_without_epoch_file_starts_at_zero(tmp_path):
    storage = FileBlockStorage(tmp_path / "new")
    assert storage.latest_saved_epoch() == 0