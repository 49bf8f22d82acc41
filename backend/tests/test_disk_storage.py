"""
Tests for the disk storage backend through the gateway
"""
import os
import time
from pathlib import Path

import pytest

from conftest import make_payload
from file_provider.core.exceptions import StorageWriteError, ValidationException
from file_provider.models.file import FileRecord, UploadPayload


@pytest.mark.asyncio
async def test_store_then_resolve(disk_gateway):
    """Stored file is found under its original name"""
    stored = await disk_gateway.store(make_payload("notes.txt", b"hello"), 7)

    assert stored == "7/notes.txt"
    location = disk_gateway.resolve_location_by_id(7)
    assert location is not None
    assert Path(location).name == "notes.txt"
    assert Path(location).read_bytes() == b"hello"


@pytest.mark.asyncio
async def test_store_then_fetch_details_round_trip(disk_gateway, png_bytes):
    """fetch_details returns the stored bytes re-encoded"""
    await disk_gateway.store(make_payload("logo.png", png_bytes), 11)

    details = await disk_gateway.fetch_details(FileRecord(id=11, original_name="logo.png"))

    assert details is not None
    assert details.decode() == png_bytes
    assert details.extension == ".png"
    assert details.encoding == "base64"
    assert details.original_name == "logo.png"
    assert details.path.endswith(os.path.join("11", "logo.png"))


@pytest.mark.asyncio
async def test_read_bytes(disk_gateway):
    await disk_gateway.store(make_payload("data.csv", b"a,b\n1,2\n"), 3)

    data, extension = await disk_gateway.read_bytes(FileRecord(id=3))

    assert data == b"a,b\n1,2\n"
    assert extension == ".csv"


@pytest.mark.asyncio
async def test_fetch_details_missing_directory(disk_gateway):
    assert await disk_gateway.fetch_details(FileRecord(id=404)) is None
    assert await disk_gateway.read_bytes(FileRecord(id=404)) is None


@pytest.mark.asyncio
async def test_fetch_details_empty_directory(disk_gateway, disk_backend):
    (disk_backend.root / "12").mkdir()

    assert disk_gateway.resolve_location_by_id(12) is None
    assert await disk_gateway.fetch_details(FileRecord(id=12)) is None


@pytest.mark.asyncio
async def test_fetch_returns_file_url(disk_gateway):
    record = FileRecord(id=5, original_name="a.png")

    assert await disk_gateway.fetch(record) == "https://files.example.com/file/5"
    assert await disk_gateway.fetch(record, host_url="http://cdn.local/") == "http://cdn.local/file/5"


@pytest.mark.asyncio
async def test_fetch_batch_disk(disk_gateway):
    records = [FileRecord(id=i, original_name=f"{i}.txt") for i in (1, 2)]

    results = await disk_gateway.fetch_batch(records, host_url="http://h")

    assert [r.url for r in results] == ["http://h/file/1", "http://h/file/2"]
    assert all(r.ok for r in results)


@pytest.mark.asyncio
async def test_remove_is_idempotent(disk_gateway, disk_backend):
    """Removing twice never raises"""
    await disk_gateway.store(make_payload("x.txt", b"x"), 9)
    record = FileRecord(id=9, original_name="x.txt")

    await disk_gateway.remove(record)
    assert not (disk_backend.root / "9").exists()

    await disk_gateway.remove(record)
    assert disk_gateway.resolve_location_by_id(9) is None


@pytest.mark.asyncio
async def test_update_replaces_file(disk_gateway, disk_backend):
    """Directory holds only the replacement after update"""
    await disk_gateway.store(make_payload("old.png", b"old"), 21)
    (disk_backend.root / "21" / "stray.tmp").write_bytes(b"stray")

    stored = await disk_gateway.update(
        make_payload("new.jpg", b"new"),
        FileRecord(id=21, original_name="old.png"),
    )

    assert stored == "21/new.jpg"
    entries = os.listdir(disk_backend.root / "21")
    assert entries == ["new.jpg"]
    assert (disk_backend.root / "21" / "new.jpg").read_bytes() == b"new"
    assert os.listdir(disk_backend.temp_path) == []


@pytest.mark.asyncio
async def test_update_same_name(disk_gateway, disk_backend):
    await disk_gateway.store(make_payload("doc.pdf", b"v1"), 22)

    await disk_gateway.update(make_payload("doc.pdf", b"v2"), FileRecord(id=22, original_name="doc.pdf"))

    assert os.listdir(disk_backend.root / "22") == ["doc.pdf"]
    assert (disk_backend.root / "22" / "doc.pdf").read_bytes() == b"v2"


@pytest.mark.asyncio
async def test_update_creates_missing_directory(disk_gateway):
    await disk_gateway.update(make_payload("a.txt", b"a"), FileRecord(id=23))

    assert Path(disk_gateway.resolve_location_by_id(23)).name == "a.txt"


@pytest.mark.asyncio
async def test_store_write_failure_rolls_back(disk_gateway, disk_backend, monkeypatch):
    """A failed write removes the id directory and rejects the request"""
    async def failing_write(path, data):
        raise OSError("disk full")

    monkeypatch.setattr(disk_backend, "_write", failing_write)

    with pytest.raises(ValidationException) as exc_info:
        await disk_gateway.store(make_payload("big.bin", b"data"), 31)

    assert exc_info.value.status_code == 400
    assert isinstance(exc_info.value.__cause__, StorageWriteError)
    assert not (disk_backend.root / "31").exists()


@pytest.mark.asyncio
async def test_update_write_failure_keeps_previous(disk_gateway, disk_backend, monkeypatch):
    """A failed replacement leaves the previous file in place"""
    await disk_gateway.store(make_payload("keep.txt", b"keep"), 32)

    async def failing_write(path, data):
        raise OSError("disk full")

    monkeypatch.setattr(disk_backend, "_write", failing_write)

    with pytest.raises(ValidationException):
        await disk_gateway.update(make_payload("next.txt", b"next"), FileRecord(id=32, original_name="keep.txt"))

    assert os.listdir(disk_backend.root / "32") == ["keep.txt"]


@pytest.mark.asyncio
async def test_store_invalid_base64(disk_gateway):
    payload = make_payload("bad.txt", b"")
    payload.content = "abc"

    with pytest.raises(ValidationException):
        await disk_gateway.store(payload, 33)


@pytest.mark.asyncio
async def test_purge_stale_temporaries(disk_gateway, disk_backend):
    """Only entries older than the limit are removed"""
    disk_backend.temp_path.mkdir(parents=True)
    stale = disk_backend.temp_path / "stale.part"
    fresh = disk_backend.temp_path / "fresh.part"
    stale_dir = disk_backend.temp_path / "stale-dir"
    stale.write_bytes(b"s")
    fresh.write_bytes(b"f")
    stale_dir.mkdir()
    (stale_dir / "chunk").write_bytes(b"c")

    old = time.time() - 600
    os.utime(stale, (old, old))
    os.utime(stale_dir, (old, old))

    removed = await disk_gateway.purge_stale_temporaries(max_age_seconds=300)

    assert removed == 2
    assert sorted(os.listdir(disk_backend.temp_path)) == ["fresh.part"]


@pytest.mark.asyncio
async def test_purge_uses_configured_age(disk_gateway, disk_backend):
    disk_backend.temp_path.mkdir(parents=True)
    entry = disk_backend.temp_path / "old.part"
    entry.write_bytes(b"o")
    old = time.time() - 301
    os.utime(entry, (old, old))

    assert await disk_gateway.purge_stale_temporaries() == 1


@pytest.mark.asyncio
async def test_purge_without_temp_directory(disk_gateway):
    """Listing failure is logged, not raised"""
    assert await disk_gateway.purge_stale_temporaries() == 0


@pytest.mark.asyncio
async def test_store_name_with_braces(disk_gateway, disk_backend):
    """Brace characters in file names are stored and logged safely"""
    stored = await disk_gateway.store(make_payload("report{draft}.txt", b"x"), 41)

    assert stored == "41/report{draft}.txt"
    assert Path(disk_gateway.resolve_location_by_id(41)).name == "report{draft}.txt"

    await disk_gateway.update(
        make_payload("report{0}.txt", b"y"),
        FileRecord(id=41, original_name="report{draft}.txt"),
    )
    assert os.listdir(disk_backend.root / "41") == ["report{0}.txt"]

    await disk_gateway.remove(FileRecord(id=41, original_name="report{0}.txt"))
    assert not (disk_backend.root / "41").exists()


@pytest.mark.asyncio
async def test_store_hex_payload(disk_gateway, disk_backend):
    payload = UploadPayload(original_name="hi.txt", encoding="hex", content="6869")

    await disk_gateway.store(payload, 42)

    assert (disk_backend.root / "42" / "hi.txt").read_bytes() == b"hi"


@pytest.mark.asyncio
async def test_store_unsupported_encoding_is_rejected(disk_gateway):
    payload = UploadPayload(original_name="a.txt", encoding="not-a-codec", content="abc")

    with pytest.raises(ValidationException) as exc_info:
        await disk_gateway.store(payload, 43)

    assert "Unsupported encoding" in exc_info.value.detail
