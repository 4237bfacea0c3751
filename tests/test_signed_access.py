"""Tests for signed streaming URLs."""

from __future__ import annotations

import time
from urllib.parse import parse_qs, urlparse

import pytest

from versioned_asset_sync.exceptions import RemoteConnectionError
from versioned_asset_sync.remote import LegacyMirror, RemoteVersionedStore
from versioned_asset_sync.sync import SignedAccessProvider

from conftest import FaultInjectingBackend


@pytest.fixture
def signer(store, mirror, identity) -> SignedAccessProvider:
    return SignedAccessProvider(store, mirror, identity, default_ttl=1800, max_ttl=3600)


def expiry_of(url: str) -> int:
    return int(parse_qs(urlparse(url).query)["se"][0])


class TestStreamableUrl:
    @pytest.mark.asyncio
    async def test_signs_latest_version(
        self, signer: SignedAccessProvider, store: RemoteVersionedStore
    ) -> None:
        await store.write("u1", "introVideoBlob", b"old", "video/mp4", "intro.mp4")
        newest = await store.write("u1", "introVideoBlob", b"new", "video/mp4", "intro.mp4")

        url = await signer.get_streamable_url("u1", "introVideoBlob")

        assert urlparse(url).path == f"/{newest.value.path}"

    @pytest.mark.asyncio
    async def test_falls_back_to_legacy_object(
        self, signer: SignedAccessProvider, backend: FaultInjectingBackend
    ) -> None:
        await backend.put_object("u1/introVideoBlob", b"legacy", "video/mp4")

        url = await signer.get_streamable_url("u1", "introVideoBlob")

        assert urlparse(url).path == "/u1/introVideoBlob"

    @pytest.mark.asyncio
    async def test_nothing_to_sign(self, signer: SignedAccessProvider) -> None:
        assert await signer.get_streamable_url("u1", "introVideoBlob") is None

    @pytest.mark.asyncio
    async def test_no_session(self, store, mirror, signed_out) -> None:
        await store.write("u1", "k", b"x", "video/mp4", "k.mp4")
        signer = SignedAccessProvider(store, mirror, signed_out)

        assert await signer.get_streamable_url("u1", "k") is None

    @pytest.mark.asyncio
    async def test_disabled_mirror_skips_legacy(
        self, store, identity, backend: FaultInjectingBackend
    ) -> None:
        await backend.put_object("u1/k", b"legacy", "video/mp4")
        signer = SignedAccessProvider(store, LegacyMirror(backend, enabled=False), identity)

        assert await signer.get_streamable_url("u1", "k") is None

    @pytest.mark.asyncio
    async def test_signing_failure_returns_none(
        self, signer: SignedAccessProvider, store, backend: FaultInjectingBackend
    ) -> None:
        await store.write("u1", "k", b"x", "video/mp4", "k.mp4")
        backend.failures["generate_signed_url"] = RemoteConnectionError("offline")

        assert await signer.get_streamable_url("u1", "k") is None

    @pytest.mark.asyncio
    async def test_urls_are_not_cached(self, signer: SignedAccessProvider, store, backend) -> None:
        await store.write("u1", "k", b"x", "video/mp4", "k.mp4")

        await signer.get_streamable_url("u1", "k")
        await signer.get_streamable_url("u1", "k")

        assert backend.calls["generate_signed_url"] == 2


class TestTtl:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "requested,expected",
        [(None, 1800), (60, 60), (0, 1), (-5, 1), (999_999, 3600)],
    )
    async def test_ttl_is_clamped(
        self, signer: SignedAccessProvider, store, requested, expected
    ) -> None:
        await store.write("u1", "k", b"x", "video/mp4", "k.mp4")

        url = await signer.get_streamable_url("u1", "k", requested)

        # Expiry is epoch seconds; allow one second of drift between calls
        assert abs(expiry_of(url) - (int(time.time()) + expected)) <= 1
