"""
Unit tests for the upload directory store.
"""
import base64
import re

import pytest

from services.image_store import UploadStore, generate_filename


class TestGenerateFilename:
    def test_keeps_original_extension(self):
        assert generate_filename("shard.JPG").endswith(".jpg")

    @pytest.mark.parametrize("name", [None, "", "capture", "weird.ext-with-dash", "x.toolongextension"])
    def test_defaults_to_png(self, name):
        assert generate_filename(name).endswith(".png")

    def test_shape_is_time_plus_random(self):
        assert re.fullmatch(r"\d{13}-\d{1,6}\.png", generate_filename("capture.png"))


class TestUploadStore:
    @pytest.mark.asyncio
    async def test_save_and_read_back(self, tmp_path, png_bytes):
        store = UploadStore(tmp_path / "uploads")

        stored = await store.save(png_bytes, "capture.png")

        assert stored.path.parent == tmp_path / "uploads"
        assert stored.path.read_bytes() == png_bytes
        assert stored.image_url == f"/uploads/{stored.filename}"
        assert base64.b64decode(await store.read_base64(stored)) == png_bytes

    @pytest.mark.asyncio
    async def test_saves_never_share_a_name(self, tmp_path, png_bytes):
        store = UploadStore(tmp_path)

        names = {(await store.save(png_bytes, "capture.png")).filename for _ in range(20)}

        assert len(names) == 20

    @pytest.mark.asyncio
    async def test_existing_name_is_skipped(self, tmp_path, png_bytes, monkeypatch):
        store = UploadStore(tmp_path)
        (tmp_path / "taken.png").write_bytes(b"old")
        names = iter(["taken.png", "fresh.png"])
        monkeypatch.setattr("services.image_store.generate_filename", lambda original: next(names))

        stored = await store.save(png_bytes, "capture.png")

        assert stored.filename == "fresh.png"
        assert (tmp_path / "taken.png").read_bytes() == b"old"

    @pytest.mark.asyncio
    async def test_directory_is_created_on_first_save(self, tmp_path, png_bytes):
        store = UploadStore(tmp_path / "later" / "uploads")
        assert not store.upload_dir.exists()

        await store.save(png_bytes, "capture.png")

        assert store.upload_dir.is_dir()
