"""Tests for the remote versioned store."""

from __future__ import annotations

import pytest

from versioned_asset_sync.exceptions import (
    RemoteConflictError,
    RemoteConnectionError,
    RemoteNotFoundError,
    RemotePermissionError,
    RemoteStorageError,
)
from versioned_asset_sync.remote import (
    FailureKind,
    RemoteVersionedStore,
    VersionClock,
    classify,
)

from conftest import FaultInjectingBackend


class TestClassify:
    def test_error_kinds(self) -> None:
        assert classify(RemoteNotFoundError("x")) is FailureKind.NOT_FOUND
        assert classify(RemotePermissionError("x")) is FailureKind.PERMISSION_DENIED
        assert classify(RemoteConnectionError("x")) is FailureKind.UNAVAILABLE
        assert classify(RemoteStorageError("x")) is FailureKind.UNAVAILABLE


class TestWrite:
    """Every write creates a new immutable object."""

    @pytest.mark.asyncio
    async def test_write_creates_versioned_path(
        self, store: RemoteVersionedStore, backend: FaultInjectingBackend
    ) -> None:
        result = await store.write("u1", "layout_en", b"{}", "application/json", "layout_en.json")

        assert result.ok
        assert result.value.path == "u1/layout_en/1700000000-layout_en.json"
        assert result.value.size_bytes == 2
        assert backend.keys == ["u1/layout_en/1700000000-layout_en.json"]

    @pytest.mark.asyncio
    async def test_writes_never_overwrite(
        self, store: RemoteVersionedStore, backend: FaultInjectingBackend
    ) -> None:
        await store.write("u1", "k", b"one", "text/plain", "k.bin")
        await store.write("u1", "k", b"two", "text/plain", "k.bin")

        assert len(backend.keys) == 2
        first, second = backend.keys
        assert (await backend.get_object(first)).content == b"one"
        assert (await backend.get_object(second)).content == b"two"

    @pytest.mark.asyncio
    async def test_collision_with_other_writer_is_disambiguated(
        self, backend: FaultInjectingBackend
    ) -> None:
        # Two processes whose clocks read the same millisecond
        device_a = RemoteVersionedStore(backend, VersionClock(lambda: 1000))
        device_b = RemoteVersionedStore(backend, VersionClock(lambda: 1000))

        a = await device_a.write("u1", "k", b"a", "text/plain", "k.bin")
        b = await device_b.write("u1", "k", b"b", "text/plain", "k.bin")

        assert a.ok and b.ok
        assert a.value.path == "u1/k/1000-k.bin"
        assert b.value.path != a.value.path
        assert b.value.version.disambiguator is not None
        assert (await backend.get_object(a.value.path)).content == b"a"

    @pytest.mark.asyncio
    async def test_write_failure_is_a_result(
        self, store: RemoteVersionedStore, backend: FaultInjectingBackend
    ) -> None:
        backend.failures["put_object"] = RemoteConnectionError("offline")

        result = await store.write("u1", "k", b"x", "text/plain", "k.bin")

        assert not result.ok
        assert result.failure is FailureKind.UNAVAILABLE

    @pytest.mark.asyncio
    async def test_repeated_conflict_is_unavailable(
        self, store: RemoteVersionedStore, backend: FaultInjectingBackend
    ) -> None:
        backend.failures["put_object"] = RemoteConflictError("exists")

        result = await store.write("u1", "k", b"x", "text/plain", "k.bin")

        assert result.failure is FailureKind.UNAVAILABLE
        assert backend.calls["put_object"] == 2


class TestListing:
    """Latest version selection."""

    @pytest.mark.asyncio
    async def test_empty_folder_is_not_found(self, store: RemoteVersionedStore) -> None:
        result = await store.list_latest("u1", "k")

        assert result.failure is FailureKind.NOT_FOUND

    @pytest.mark.asyncio
    async def test_latest_is_newest_write(self, store: RemoteVersionedStore) -> None:
        for payload in (b"1", b"2", b"3"):
            await store.write("u1", "k", payload, "text/plain", "k.bin")

        latest = await store.list_latest("u1", "k")
        stored = await store.read(latest.value.path)

        assert stored.value.content == b"3"

    @pytest.mark.asyncio
    async def test_latest_uses_numeric_time_order(self, backend: FaultInjectingBackend) -> None:
        await backend.put_object("u1/k/999-k.bin", b"old", "text/plain")
        await backend.put_object("u1/k/1000-k.bin", b"new", "text/plain")
        store = RemoteVersionedStore(backend)

        latest = await store.list_latest("u1", "k")

        assert latest.value.path == "u1/k/1000-k.bin"

    @pytest.mark.asyncio
    async def test_foreign_objects_rank_below_versions(self, backend: FaultInjectingBackend) -> None:
        await backend.put_object("u1/k/1000-k.bin", b"versioned", "text/plain")
        await backend.put_object("u1/k/zzz-manual-upload", b"manual", "text/plain")
        store = RemoteVersionedStore(backend)

        listed = await store.list_versions("u1", "k")

        assert [v.path for v in listed.value] == ["u1/k/zzz-manual-upload", "u1/k/1000-k.bin"]
        assert listed.value[0].version is None

    @pytest.mark.asyncio
    async def test_folder_listing_ignores_sibling_keys(self, store: RemoteVersionedStore) -> None:
        await store.write("u1", "menu", b"a", "text/plain", "a.bin")
        await store.write("u1", "menuBackgroundBlob", b"b", "text/plain", "b.bin")

        listed = await store.list_versions("u1", "menu")

        assert len(listed.value) == 1

    @pytest.mark.asyncio
    async def test_listing_failure(
        self, store: RemoteVersionedStore, backend: FaultInjectingBackend
    ) -> None:
        backend.failures["list_objects"] = RemotePermissionError("denied")

        result = await store.list_latest("u1", "k")

        assert result.failure is FailureKind.PERMISSION_DENIED


class TestReadsAndUrls:
    @pytest.mark.asyncio
    async def test_read_missing_path(self, store: RemoteVersionedStore) -> None:
        result = await store.read("u1/k/123-gone.bin")

        assert result.failure is FailureKind.NOT_FOUND

    @pytest.mark.asyncio
    async def test_stat_and_signed_url(self, store: RemoteVersionedStore) -> None:
        written = await store.write("u1", "k", b"abc", "image/png", "k.png")

        info = await store.stat(written.value.path)
        url = await store.signed_url(written.value.path, 60)

        assert info.value.content_type == "image/png"
        assert info.value.size_bytes == 3
        assert url.value.startswith("memory://assets/u1/k/")


class TestRemoval:
    @pytest.mark.asyncio
    async def test_remove_reports_each_path(
        self, store: RemoteVersionedStore, backend: FaultInjectingBackend
    ) -> None:
        written = await store.write("u1", "k", b"x", "text/plain", "k.bin")

        report = await store.remove([written.value.path, "u1/k/missing"])

        assert report.removed == [written.value.path]
        assert report.missing == ["u1/k/missing"]
        assert report.success

    @pytest.mark.asyncio
    async def test_remove_continues_past_failures(
        self, store: RemoteVersionedStore, backend: FaultInjectingBackend
    ) -> None:
        backend.failures["delete_object"] = RemoteConnectionError("offline")

        report = await store.remove(["a", "b"])

        assert set(report.failed) == {"a", "b"}
        assert not report.success

    @pytest.mark.asyncio
    async def test_remove_prefix_with_extra_paths(
        self, store: RemoteVersionedStore, backend: FaultInjectingBackend
    ) -> None:
        await store.write("u1", "k", b"1", "text/plain", "k.bin")
        await store.write("u1", "k", b"2", "text/plain", "k.bin")
        await backend.put_object("u1/k", b"legacy", "text/plain")
        await backend.put_object("u2/k/1-k.bin", b"other owner", "text/plain")

        report = await store.remove_prefix("u1/k/", extra_paths=["u1/k"])

        assert len(report.removed) == 3
        assert backend.keys == ["u2/k/1-k.bin"]
