"""
Similarity retrieval over the corpus and context rendering.

Queries are embedded as raw text, searched against the vector index, filtered
by the similarity threshold, and rendered in one of three context formats:

- minimal: one line per hit with title, difficulty and the start of the approach
- hints:   one line per hit with title and tags only (safe for interview mode)
- full:    a block per hit with tags, problem and approach, truncated to chunk size
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Protocol, Sequence

from codementor.core.config import RetrievalConfig
from codementor.core.vector_index import VectorIndex
from codementor.domain.models import Document, Source

logger = logging.getLogger(__name__)

CONTEXT_SEPARATOR = "\n---\n"


class ContextFormat(str, Enum):
    MINIMAL = "minimal"
    HINTS = "hints"
    FULL = "full"


class Embedder(Protocol):
    async def embed(self, text: str) -> List[float]:
        ...

    async def embed_batch(self, texts: Sequence[str]) -> List[List[float]]:
        ...


@dataclass
class SearchResult:
    document: Document
    score: float
    rank: int


@dataclass
class RetrievalResult:
    context: str = ""
    sources: List[Source] = field(default_factory=list)
    results: List[SearchResult] = field(default_factory=list)


def document_to_text(doc: Document) -> str:
    """Canonical text used to embed a corpus document."""
    parts = []
    if doc.title:
        parts.append(f"Title: {doc.title}")
    if doc.problem:
        parts.append(f"Problem: {doc.problem}")
    if doc.approach:
        parts.append(f"Approach: {doc.approach}")
    if doc.tags:
        parts.append(f"Tags: {', '.join(doc.tags)}")
    if doc.difficulty:
        parts.append(f"Difficulty: {doc.difficulty.value}")
    if doc.complexity:
        parts.append(f"Complexity: {doc.complexity}")
    return "\n".join(parts)


def _tags(doc: Document) -> str:
    return ", ".join(doc.tags) if doc.tags else "N/A"


def format_minimal(results: List[SearchResult], approach_chars: int = 200) -> str:
    lines = [
        f"{r.document.title} ({r.document.difficulty.value}): {r.document.approach[:approach_chars] or 'N/A'}"
        for r in results
    ]
    return CONTEXT_SEPARATOR.join(lines)


def format_hints(results: List[SearchResult]) -> str:
    lines = [f"Similar: {r.document.title} - Tags: {_tags(r.document)}" for r in results]
    return CONTEXT_SEPARATOR.join(lines)


def format_full(results: List[SearchResult], chunk_size: int = 500) -> str:
    blocks = []
    for r in results:
        doc = r.document
        blocks.append(
            f"### {doc.title} ({doc.difficulty.value})\n"
            f"**Tags:** {_tags(doc)}\n"
            f"**Problem:** {doc.problem[:chunk_size]}\n"
            f"**Approach:** {doc.approach[:chunk_size] or 'N/A'}"
        )
    return CONTEXT_SEPARATOR.join(blocks)


class Retriever:
    def __init__(self, index: VectorIndex, embedder: Embedder, config: RetrievalConfig):
        self.index = index
        self.embedder = embedder
        self.config = config

    async def index_documents(self, documents: Sequence[Document]) -> int:
        """Embed documents in one batch and append them to the index."""
        if not documents:
            return 0
        texts = [document_to_text(doc) for doc in documents]
        embeddings = await self.embedder.embed_batch(texts)
        self.index.add_many(embeddings, documents)
        return len(documents)

    async def search(
        self,
        query: str,
        top_k: Optional[int] = None,
        threshold: Optional[float] = None,
    ) -> List[SearchResult]:
        top_k = top_k or self.config.top_k
        threshold = self.config.similarity_threshold if threshold is None else threshold

        query_embedding = await self.embedder.embed(query)
        hits = self.index.search(query_embedding, top_k)

        results = []
        for rank, (label, score) in enumerate(hits, start=1):
            logger.debug(f"[RAG] Hit {rank}: idx={label}, score={score:.4f}, title={self.index.documents[label].title}")
            if score >= threshold:
                results.append(SearchResult(document=self.index.documents[label], score=score, rank=rank))

        logger.info(f"[RAG] Found {len(results)} relevant documents (threshold: {threshold})")
        return results

    def render_context(self, results: List[SearchResult], context_format: ContextFormat) -> str:
        if not results:
            return ""
        if context_format == ContextFormat.MINIMAL:
            return format_minimal(results, self.config.minimal_approach_chars)
        if context_format == ContextFormat.HINTS:
            return format_hints(results)
        return format_full(results, self.config.chunk_size)

    async def retrieve(
        self,
        query: str,
        top_k: Optional[int] = None,
        context_format: str = ContextFormat.FULL,
        threshold: Optional[float] = None,
    ) -> RetrievalResult:
        """Retrieve and render context. Failures degrade to an empty result."""
        try:
            results = await self.search(query, top_k=top_k, threshold=threshold)
            context = self.render_context(results, ContextFormat(context_format))
        except Exception as e:
            logger.error(f"[RAG] Context retrieval failed: {e}")
            return RetrievalResult()

        sources = [
            Source(title=r.document.title, score=r.score, difficulty=r.document.difficulty, tags=list(r.document.tags))
            for r in results
        ]
        return RetrievalResult(context=context, sources=sources, results=results)
