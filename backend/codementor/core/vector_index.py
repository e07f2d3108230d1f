"""
Flat FAISS vector index over the reference corpus.

Vectors are L2-normalized before insertion into an inner-product index, so
search scores are cosine similarities. Documents are kept in a list parallel
to the FAISS labels. The raw (un-normalized) vectors are kept as well so the
whole store can be written to a single JSON snapshot and rebuilt from it.
"""
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Sequence, Tuple

import faiss
import numpy as np
from pydantic import ValidationError

from codementor.domain.models import Document

logger = logging.getLogger(__name__)


def normalize_vector(vector: Sequence[float]) -> np.ndarray:
    """Return `vector` as a float32 row scaled to unit L2 norm (zero vectors unchanged)."""
    arr = np.asarray(vector, dtype=np.float32).reshape(1, -1).copy()
    faiss.normalize_L2(arr)
    return arr


class VectorIndex:
    def __init__(self, dimension: int = 384, model_id: str = ""):
        self.dimension = dimension
        self.model_id = model_id
        self._reset_store()

    def _reset_store(self) -> None:
        self.index = faiss.IndexFlatIP(self.dimension)
        self.documents: List[Document] = []
        self._raw_vectors: List[List[float]] = []

    def __len__(self) -> int:
        return len(self.documents)

    def _check_dimension(self, vector: Sequence[float]) -> None:
        if len(vector) != self.dimension:
            raise ValueError(
                f"Vector dimension {len(vector)} does not match index dimension {self.dimension}"
            )

    def add(self, vector: Sequence[float], document: Document) -> None:
        """Append one vector and its document at the next label."""
        self._check_dimension(vector)
        self.index.add(normalize_vector(vector))
        self.documents.append(document)
        self._raw_vectors.append([float(v) for v in vector])

    def add_many(self, vectors: Sequence[Sequence[float]], documents: Sequence[Document]) -> None:
        if len(vectors) != len(documents):
            raise ValueError(f"Got {len(vectors)} vectors for {len(documents)} documents")
        for vector, document in zip(vectors, documents):
            self.add(vector, document)
        logger.info(f"[INDEX] Added {len(documents)} documents ({len(self)} total)")

    def search(self, query_vector: Sequence[float], k: int) -> List[Tuple[int, float]]:
        """Return up to `k` (label, score) pairs, highest inner product first."""
        if len(self) == 0 or k <= 0:
            return []
        self._check_dimension(query_vector)

        k = min(k, len(self))
        scores, labels = self.index.search(normalize_vector(query_vector), k)

        return [
            (int(label), float(score))
            for label, score in zip(labels[0], scores[0])
            if 0 <= label < len(self.documents)
        ]

    def reset(self) -> None:
        self._reset_store()
        logger.info("[INDEX] Index reset")

    # ==================== Persistence ====================

    def save(self, path: str) -> None:
        snapshot = {
            "documents": [doc.model_dump(mode="json", exclude_none=True) for doc in self.documents],
            "embeddings": self._raw_vectors,
            "metadata": {
                "dimension": self.dimension,
                "modelId": self.model_id,
                "createdAt": datetime.now(timezone.utc).isoformat(),
                "count": len(self.documents),
            },
        }
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps(snapshot, indent=2), encoding="utf-8")
        logger.info(f"[INDEX] Saved {len(self)} documents to {target}")

    def load(self, path: str) -> bool:
        """Replace the store with a snapshot. Returns False (store left empty) if unusable."""
        self._reset_store()
        source = Path(path)
        if not source.exists():
            logger.info(f"[INDEX] No snapshot at {source}")
            return False

        try:
            data = json.loads(source.read_text(encoding="utf-8"))
            metadata = data.get("metadata", {})
            documents = [Document.model_validate(doc) for doc in data.get("documents", [])]
            embeddings = data.get("embeddings", [])
        except (OSError, json.JSONDecodeError, ValidationError, AttributeError) as e:
            logger.error(f"[INDEX] Unreadable snapshot {source}: {e}")
            return False

        snapshot_dim = metadata.get("dimension") or (len(embeddings[0]) if embeddings else None)
        if snapshot_dim != self.dimension:
            logger.warning(
                f"[INDEX] Snapshot dimension {snapshot_dim} does not match configured {self.dimension}; ignoring"
            )
            return False
        if not embeddings or len(embeddings) != len(documents):
            logger.warning(
                f"[INDEX] Snapshot has {len(embeddings)} embeddings for {len(documents)} documents; ignoring"
            )
            return False

        try:
            self.add_many(embeddings, documents)
        except ValueError as e:
            logger.error(f"[INDEX] Malformed vectors in snapshot: {e}")
            self._reset_store()
            return False

        if metadata.get("modelId"):
            self.model_id = metadata["modelId"]
        logger.info(f"[INDEX] Loaded {len(self)} documents from {source}")
        return True
