"""
Adaptive embedding tests.
Covers: primary path, fallback switch (sticky and per-call), total failure and the LRU cache.
"""
import pytest

from codementor.core.config import EmbeddingConfig
from codementor.core.embeddings import AdaptiveEmbeddings
from codementor.core.exceptions import EmbeddingError


class StubBackend:
    def __init__(self, name, value=1.0, fail=False):
        self.name = name
        self.value = value
        self.fail = fail
        self.calls = 0

    async def embed_batch(self, texts):
        self.calls += 1
        if self.fail:
            raise ConnectionError(f"{self.name} unavailable")
        return [[self.value, float(len(t))] for t in texts]


def _embedder(primary, fallback, **config):
    return AdaptiveEmbeddings(EmbeddingConfig(**config), primary=primary, fallback=fallback)


@pytest.mark.asyncio
async def test_primary_backend_is_used_first():
    primary, fallback = StubBackend("local"), StubBackend("remote", value=2.0)
    embedder = _embedder(primary, fallback)

    assert await embedder.embed("abc") == [1.0, 3.0]
    assert fallback.calls == 0
    assert embedder.model_name == "local"


@pytest.mark.asyncio
async def test_sticky_fallback_stays_on_fallback():
    primary, fallback = StubBackend("local", fail=True), StubBackend("remote", value=2.0)
    embedder = _embedder(primary, fallback, sticky_fallback=True)

    assert await embedder.embed("first") == [2.0, 5.0]
    primary.fail = False
    assert await embedder.embed("second") == [2.0, 6.0]

    assert primary.calls == 1
    assert embedder.use_primary is False
    assert embedder.model_name == "remote"


@pytest.mark.asyncio
async def test_non_sticky_fallback_retries_primary():
    primary, fallback = StubBackend("local", fail=True), StubBackend("remote", value=2.0)
    embedder = _embedder(primary, fallback, sticky_fallback=False)

    assert await embedder.embed("first") == [2.0, 5.0]
    primary.fail = False
    assert await embedder.embed("second") == [1.0, 6.0]
    assert embedder.use_primary is True


@pytest.mark.asyncio
async def test_both_backends_failing_raises_embedding_error():
    embedder = _embedder(StubBackend("local", fail=True), StubBackend("remote", fail=True))
    with pytest.raises(EmbeddingError):
        await embedder.embed_batch(["a", "b"])


@pytest.mark.asyncio
async def test_batch_keeps_order_and_empty_batch_is_free():
    primary = StubBackend("local")
    embedder = _embedder(primary, StubBackend("remote"))

    assert await embedder.embed_batch(["a", "bbb", "cc"]) == [[1.0, 1.0], [1.0, 3.0], [1.0, 2.0]]
    assert await embedder.embed_batch([]) == []
    assert primary.calls == 1


@pytest.mark.asyncio
async def test_cache_hits_skip_backend_and_evict_least_recent():
    primary = StubBackend("local")
    embedder = _embedder(primary, StubBackend("remote"), cache_size=2)

    await embedder.embed("a")
    await embedder.embed("b")
    await embedder.embed("a")          # hit, "a" becomes most recent
    assert primary.calls == 2

    await embedder.embed("c")          # evicts "b"
    await embedder.embed("a")          # still cached
    assert primary.calls == 3
    await embedder.embed("b")
    assert primary.calls == 4

    embedder.clear_cache()
    await embedder.embed("a")
    assert primary.calls == 5
