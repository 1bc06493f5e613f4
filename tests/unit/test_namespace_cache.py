"""Unit tests for namespace provisioning and the shared namespace cache."""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from vault_rag.errors import NamespaceError
from vault_rag.models import Chunk
from vault_rag.retrieval.namespace_cache import NamespaceCache

TENANT = "6f1c1d8e-2b7a-4f5e-9a51-3f8e0f0c2a11"


class TestNamespaceCache:
    def test_unknown_uuid_not_provisioned(self, namespace_cache: NamespaceCache) -> None:
        assert namespace_cache.has(TENANT) is False

    def test_mark_then_has(self, namespace_cache: NamespaceCache) -> None:
        namespace_cache.mark_provisioned(TENANT)
        assert namespace_cache.has(TENANT) is True
        assert len(namespace_cache) == 1

    def test_discard(self, namespace_cache: NamespaceCache) -> None:
        namespace_cache.mark_provisioned(TENANT)
        namespace_cache.discard(TENANT)
        assert namespace_cache.has(TENANT) is False

    def test_lock_for_is_stable_per_uuid(self, namespace_cache: NamespaceCache) -> None:
        assert namespace_cache.lock_for("a") is namespace_cache.lock_for("a")
        assert namespace_cache.lock_for("a") is not namespace_cache.lock_for("b")

    def test_concurrent_writers(self, namespace_cache: NamespaceCache) -> None:
        uuids = [f"tenant-{i}" for i in range(200)]
        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(namespace_cache.mark_provisioned, uuids))
        assert len(namespace_cache) == 200
        assert all(namespace_cache.has(u) for u in uuids)


class TestEnsureNamespace:
    def test_second_call_is_noop(self, memory_store) -> None:
        memory_store.ensure_namespace(TENANT)
        memory_store.ensure_namespace(TENANT)
        assert memory_store.probes == 1
        assert memory_store.creates == 1

    def test_existing_namespace_not_recreated(self, memory_store) -> None:
        memory_store.namespaces[TENANT] = {}
        memory_store.ensure_namespace(TENANT)
        assert memory_store.probes == 1
        assert memory_store.creates == 0
        assert memory_store.cache.has(TENANT)

    def test_failed_creation_does_not_poison_cache(self, memory_store) -> None:
        calls = {"n": 0}
        original = memory_store._create_namespace

        def flaky_create(uuid: str) -> None:
            calls["n"] += 1
            if calls["n"] == 1:
                raise NamespaceError("Error creating collection", status_code=500)
            original(uuid)

        memory_store._create_namespace = flaky_create

        with pytest.raises(NamespaceError):
            memory_store.ensure_namespace(TENANT)
        assert not memory_store.cache.has(TENANT)

        memory_store.ensure_namespace(TENANT)
        assert memory_store.cache.has(TENANT)
        assert calls["n"] == 2

    def test_concurrent_workers_provision_once(self, memory_store) -> None:
        barrier = threading.Barrier(6)

        def worker() -> None:
            barrier.wait()
            memory_store.ensure_namespace(TENANT)

        threads = [threading.Thread(target=worker) for _ in range(6)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert memory_store.creates == 1
        assert memory_store.probes == 1

    def test_upsert_provisions_first(self, memory_store) -> None:
        chunk = Chunk(text="hello", title="a.txt", start=0, end=5)
        memory_store.upsert_embeddings([[1.0, 0.0]], [chunk], TENANT)
        assert memory_store.cache.has(TENANT)
        assert len(memory_store.namespaces[TENANT]) == 1
