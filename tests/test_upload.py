"""Tests for the local-first upload pipeline."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest

from versioned_asset_sync.exceptions import (
    LocalStorageError,
    RemoteConnectionError,
    RemotePermissionError,
)
from versioned_asset_sync.local import CachedBlob, LocalCache
from versioned_asset_sync.remote import FailureKind, LegacyMirror, RemoteVersionedStore
from versioned_asset_sync.sync import UploadPipeline, infer_content_type, safe_filename

from conftest import FaultInjectingBackend


class TestHelpers:
    def test_explicit_content_type_wins(self) -> None:
        assert infer_content_type("video/webm", "clip.mp4") == "video/webm"

    def test_content_type_from_filename(self) -> None:
        assert infer_content_type(None, "menu.png") == "image/png"

    def test_unknown_content_type(self) -> None:
        assert infer_content_type(None, None) == "application/octet-stream"
        assert infer_content_type(None, "blob.zzz-unknown") == "application/octet-stream"

    def test_safe_filename_strips_directories(self) -> None:
        assert safe_filename("../../etc/passwd", "k.bin") == "passwd"
        assert safe_filename("C:\\Users\\me\\bg.jpg", "k.bin") == "bg.jpg"

    def test_safe_filename_default(self) -> None:
        assert safe_filename(None, "k.bin") == "k.bin"
        assert safe_filename("dir/", "k.bin") == "k.bin"


class TestUploadBlob:
    @pytest.mark.asyncio
    async def test_saves_locally_and_remotely(
        self,
        uploads: UploadPipeline,
        cache: LocalCache,
        backend: FaultInjectingBackend,
    ) -> None:
        outcome = await uploads.upload_blob("u1", "menuBackgroundBlob", b"png", filename="bg.png")

        assert outcome.remote_written
        assert outcome.marker == "u1/menuBackgroundBlob/1700000000-bg.png"
        assert await cache.get_blob("u1", "menuBackgroundBlob") == CachedBlob(b"png", "image/png")
        assert await cache.get_marker("u1", "menuBackgroundBlob") == outcome.marker
        stored = await backend.get_object(outcome.marker)
        assert stored.content_type == "image/png"

    @pytest.mark.asyncio
    async def test_default_filename(self, uploads: UploadPipeline) -> None:
        outcome = await uploads.upload_blob("u1", "introVideoBlob", b"x")

        assert outcome.marker.endswith("-introVideoBlob.bin")

    @pytest.mark.asyncio
    async def test_remote_failure_keeps_local_copy(
        self,
        uploads: UploadPipeline,
        cache: LocalCache,
        backend: FaultInjectingBackend,
    ) -> None:
        backend.failures["put_object"] = RemoteConnectionError("offline")

        outcome = await uploads.upload_blob("u1", "bg", b"local bytes", "image/png")

        assert outcome.saved_locally
        assert not outcome.remote_written
        assert outcome.failure is FailureKind.UNAVAILABLE
        assert (await cache.get_blob("u1", "bg")).data == b"local bytes"
        assert await cache.get_marker("u1", "bg") is None

    @pytest.mark.asyncio
    async def test_failed_write_keeps_previous_marker(
        self,
        uploads: UploadPipeline,
        cache: LocalCache,
        backend: FaultInjectingBackend,
    ) -> None:
        first = await uploads.upload_blob("u1", "bg", b"v1")
        backend.failures["put_object"] = RemotePermissionError("denied")

        outcome = await uploads.upload_blob("u1", "bg", b"v2")

        assert outcome.failure is FailureKind.PERMISSION_DENIED
        assert (await cache.get_blob("u1", "bg")).data == b"v2"
        assert await cache.get_marker("u1", "bg") == first.marker

    @pytest.mark.asyncio
    async def test_no_session_is_local_only(
        self,
        cache: LocalCache,
        store: RemoteVersionedStore,
        mirror: LegacyMirror,
        signed_out,
        backend: FaultInjectingBackend,
    ) -> None:
        uploads = UploadPipeline(cache, store, mirror, signed_out)

        outcome = await uploads.upload_blob("u1", "bg", b"offline")

        assert outcome.failure is FailureKind.NO_SESSION
        assert (await cache.get_blob("u1", "bg")).data == b"offline"
        assert backend.calls["put_object"] == 0

    @pytest.mark.asyncio
    async def test_local_failure_raises(
        self, store: RemoteVersionedStore, mirror: LegacyMirror, identity, backend
    ) -> None:
        cache = AsyncMock(spec=LocalCache)
        cache.set_blob.side_effect = LocalStorageError("write_bytes", "/cache/u1__bg.blob")
        uploads = UploadPipeline(cache, store, mirror, identity)

        with pytest.raises(LocalStorageError):
            await uploads.upload_blob("u1", "bg", b"x")

        assert backend.calls["put_object"] == 0


class TestUploadJson:
    @pytest.mark.asyncio
    async def test_json_document(
        self,
        uploads: UploadPipeline,
        cache: LocalCache,
        backend: FaultInjectingBackend,
    ) -> None:
        document = {"mode": "template", "templateId": "T1A"}

        outcome = await uploads.upload_json("u1", "layout_en", document)

        assert outcome.marker == "u1/layout_en/1700000000-layout_en.json"
        stored = await backend.get_object(outcome.marker)
        assert stored.content_type == "application/json"
        assert json.loads(stored.content) == document
        assert await cache.get_json("u1", "layout_en") == document

    @pytest.mark.asyncio
    async def test_none_becomes_empty_object(self, uploads: UploadPipeline, cache: LocalCache) -> None:
        await uploads.upload_json("u1", "layout_en", None)

        assert await cache.get_json("u1", "layout_en") == {}

    @pytest.mark.asyncio
    async def test_datetime_serialized_like_cache(
        self,
        uploads: UploadPipeline,
        cache: LocalCache,
        backend: FaultInjectingBackend,
    ) -> None:
        published = datetime(2024, 5, 1, 9, 30, tzinfo=UTC)

        outcome = await uploads.upload_json("u1", "layout_en", {"publishedAt": published})

        stored = await backend.get_object(outcome.marker)
        assert json.loads(stored.content) == {"publishedAt": published.isoformat()}
        assert await cache.get_json("u1", "layout_en") == {"publishedAt": published.isoformat()}

    @pytest.mark.asyncio
    async def test_unserializable_document_saves_nothing(
        self,
        uploads: UploadPipeline,
        cache: LocalCache,
        backend: FaultInjectingBackend,
    ) -> None:
        with pytest.raises(LocalStorageError):
            await uploads.upload_json("u1", "layout_en", {"items": {1, 2}})

        assert await cache.get_json("u1", "layout_en") is None
        assert backend.calls["put_object"] == 0


class TestLegacyMirroring:
    @pytest.mark.asyncio
    async def test_successful_upload_updates_legacy_path(
        self, uploads: UploadPipeline, mirror: LegacyMirror, backend: FaultInjectingBackend
    ) -> None:
        await uploads.upload_json("u1", "layout", {"a": 1})
        await mirror.drain()

        assert json.loads((await backend.get_object("u1/layout")).content) == {"a": 1}

    @pytest.mark.asyncio
    async def test_local_only_upload_does_not_mirror(
        self, uploads: UploadPipeline, mirror: LegacyMirror, backend: FaultInjectingBackend
    ) -> None:
        backend.failures["put_object"] = RemoteConnectionError("offline")

        await uploads.upload_json("u1", "layout", {"a": 1})
        await mirror.drain()

        assert backend.calls["put_object"] == 1

    @pytest.mark.asyncio
    async def test_mirror_failure_does_not_affect_outcome(
        self,
        uploads: UploadPipeline,
        mirror: LegacyMirror,
        backend: FaultInjectingBackend,
    ) -> None:
        outcome = await uploads.upload_json("u1", "layout", {"a": 1})
        backend.failures["put_object"] = RemoteConnectionError("offline")
        await mirror.drain()

        assert outcome.remote_written
        assert backend.keys == [outcome.marker]
