"""
Adaptive text embeddings.

The primary backend is a local sentence-transformers model; the fallback is an
OpenAI-compatible embeddings endpoint (Ollama serves one at /v1). When the
primary fails the embedder switches to the fallback, and with
`sticky_fallback` enabled it stays there for the rest of the process.
"""
import asyncio
import logging
import time
from collections import OrderedDict
from typing import List, Optional, Protocol, Sequence

from openai import AsyncOpenAI

from codementor.core.config import EmbeddingConfig
from codementor.core.exceptions import EmbeddingError

logger = logging.getLogger(__name__)


class EmbeddingBackend(Protocol):
    name: str

    async def embed_batch(self, texts: Sequence[str]) -> List[List[float]]:
        ...


class SentenceTransformerBackend:
    """Local sentence-transformers model, loaded on first use."""

    def __init__(self, model_name: str):
        self.name = model_name
        self._model = None

    def _load_model(self):
        if self._model is None:
            from sentence_transformers import SentenceTransformer

            start_time = time.time()
            self._model = SentenceTransformer(self.name)
            logger.info(f"[EMBED] Local model loaded: {self.name} ({time.time() - start_time:.2f}s)")
        return self._model

    def _encode(self, texts: Sequence[str]) -> List[List[float]]:
        model = self._load_model()
        return model.encode(list(texts), convert_to_numpy=True).tolist()

    async def embed_batch(self, texts: Sequence[str]) -> List[List[float]]:
        return await asyncio.to_thread(self._encode, texts)


class OpenAICompatibleBackend:
    """Remote embeddings through an OpenAI-compatible endpoint."""

    def __init__(self, model_name: str, base_url: str, api_key: str = "ollama", timeout_seconds: int = 30):
        self.name = model_name
        self.client = AsyncOpenAI(base_url=base_url, api_key=api_key, timeout=timeout_seconds, max_retries=0)

    async def embed_batch(self, texts: Sequence[str]) -> List[List[float]]:
        response = await self.client.embeddings.create(model=self.name, input=list(texts))
        return [item.embedding for item in response.data]


class AdaptiveEmbeddings:
    def __init__(
        self,
        config: EmbeddingConfig,
        primary: Optional[EmbeddingBackend] = None,
        fallback: Optional[EmbeddingBackend] = None,
    ):
        self.config = config
        self.primary = primary or SentenceTransformerBackend(config.primary_model)
        self.fallback = fallback or OpenAICompatibleBackend(
            config.fallback_model,
            base_url=config.fallback_base_url,
            timeout_seconds=config.timeout_seconds,
        )
        self.use_primary = True
        self._cache: "OrderedDict[str, List[float]]" = OrderedDict()

    @property
    def dimension(self) -> int:
        return self.config.dimension

    @property
    def model_name(self) -> str:
        return self.primary.name if self.use_primary else self.fallback.name

    # ==================== Cache ====================

    def _cache_get(self, text: str) -> Optional[List[float]]:
        if text in self._cache:
            self._cache.move_to_end(text)
            return self._cache[text]
        return None

    def _cache_put(self, text: str, embedding: List[float]) -> None:
        self._cache[text] = embedding
        self._cache.move_to_end(text)
        while len(self._cache) > self.config.cache_size:
            self._cache.popitem(last=False)

    def clear_cache(self) -> None:
        self._cache.clear()
        logger.info("[EMBED] Embedding cache cleared")

    # ==================== Embedding ====================

    async def embed(self, text: str) -> List[float]:
        cached = self._cache_get(text)
        if cached is not None:
            return cached

        embedding = (await self._embed_with_fallback([text]))[0]
        self._cache_put(text, embedding)
        return embedding

    async def embed_batch(self, texts: Sequence[str]) -> List[List[float]]:
        """Embed all texts in order; fails as a whole if no backend succeeds."""
        if not texts:
            return []
        logger.info(f"[EMBED] Embedding {len(texts)} texts")
        return await self._embed_with_fallback(texts)

    async def _embed_with_fallback(self, texts: Sequence[str]) -> List[List[float]]:
        if self.use_primary:
            try:
                return await self.primary.embed_batch(texts)
            except Exception as e:
                logger.error(f"[EMBED] Primary backend {self.primary.name} failed: {str(e)[:200]}")
                if self.config.sticky_fallback:
                    logger.warning(f"[EMBED] Switching to {self.fallback.name} for the rest of the process")
                    self.use_primary = False

        try:
            start_time = time.time()
            embeddings = await self.fallback.embed_batch(texts)
            logger.info(f"[EMBED] Fallback embeddings completed: {time.time() - start_time:.2f}s")
            return embeddings
        except Exception as e:
            raise EmbeddingError(f"Embedding failed with {self.fallback.name}: {e}") from e
