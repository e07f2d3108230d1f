"""
Shared pytest fixtures and fakes.

Nothing here touches the network or downloads a model: embeddings come from
a deterministic bag-of-words hasher and completions from a scripted client.
"""
import hashlib
import json
import re
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence

import pytest

from codementor.core.config import IndexConfig, Settings
from codementor.core.exceptions import CompletionError
from codementor.core.llm_client import CompletionOptions, CompletionResult
from codementor.core.vector_index import VectorIndex
from codementor.domain.models import Difficulty, Document
from codementor.services.pipeline import RAGPipeline
from codementor.services.session_manager import SessionManager


DIMENSION = 384


# --- Fakes ---

class HashingEmbedder:
    """Bag-of-words vectors: each lowercase token adds 1 to a hashed bucket."""

    def __init__(self, dimension: int = DIMENSION):
        self.dimension = dimension
        self.model_name = "hashing-test"
        self.calls = 0

    def vector(self, text: str) -> List[float]:
        vec = [0.0] * self.dimension
        for token in re.findall(r"[a-z0-9]+", text.lower()):
            bucket = int(hashlib.md5(token.encode("utf-8")).hexdigest(), 16) % self.dimension
            vec[bucket] += 1.0
        return vec

    async def embed(self, text: str) -> List[float]:
        self.calls += 1
        return self.vector(text)

    async def embed_batch(self, texts: Sequence[str]) -> List[List[float]]:
        self.calls += 1
        return [self.vector(t) for t in texts]


class FailingEmbedder(HashingEmbedder):
    async def embed(self, text: str) -> List[float]:
        raise RuntimeError("embedding backend down")


class FakeCompletionClient:
    """Returns scripted replies in order (the last one repeats) and records every call."""

    def __init__(self, replies: Optional[List[str]] = None, fail: bool = False):
        self.replies = list(replies or ["ok"])
        self.fail = fail
        self.calls: List[Dict] = []
        self.model = "fake-llm"

    async def complete(self, system_prompt: str, user_prompt: str, options: Optional[CompletionOptions] = None):
        self.calls.append({"system": system_prompt, "user": user_prompt, "options": options})
        if self.fail:
            raise CompletionError("Completion backend error: connection refused", {"duration_ms": 1})
        text = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        return CompletionResult(text=text, model=self.model, token_usage={"output_tokens": 42}, duration_ms=5)

    async def health_check(self):
        return {"available": True, "models": [self.model], "current_model": self.model, "model_available": True}


class FakeClock:
    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2024, 1, 1, 12, 0, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, minutes: float) -> None:
        self.now += timedelta(minutes=minutes)


# --- Sample data ---

CORPUS = [
    Document(
        id=1,
        title="Two Sum",
        difficulty=Difficulty.EASY,
        tags=["array", "hashmap"],
        problem="Find two numbers in an array that sum to a target value and return their indices.",
        approach="Store each value in a hash map and look up target minus the current number.",
        complexity="Time O(n), Space O(n)",
    ),
    Document(
        id=2,
        title="Number of Islands",
        difficulty=Difficulty.MEDIUM,
        tags=["graph", "dfs", "matrix"],
        problem="Count connected regions of land cells in a grid of land and water.",
        approach="Flood fill every unvisited land cell with depth first search.",
        complexity="Time O(m*n), Space O(m*n)",
    ),
    Document(
        id=3,
        title="Valid Parentheses",
        difficulty=Difficulty.EASY,
        tags=["string", "stack"],
        problem="Check whether every bracket in a string is closed by the matching bracket type in order.",
        approach="Push opening brackets on a stack and pop on each matching closing bracket.",
        complexity="Time O(n), Space O(n)",
    ),
]


WELL_FORMED_ANALYSIS = """### 1. PROBLEM UNDERSTANDING
We need two indices whose values add up to the target.

### 2. BRUTE FORCE APPROACH
Check every pair of indices with two nested loops.

### 3. OPTIMIZED APPROACH
Use a hash map from value to index and look up the complement in one pass.

### 4. TIME COMPLEXITY
O(n) because each element is visited once.

### 5. SPACE COMPLEXITY
O(n) for the hash map.

### 6. EDGE CASES
- Empty array
- Duplicate values
- Negative numbers

### 7. JAVA IMPLEMENTATION
```java
public int[] twoSum(int[] nums, int target) {
    Map<Integer, Integer> seen = new HashMap<>();
    for (int i = 0; i < nums.length; i++) {
        Integer j = seen.get(target - nums[i]);
        if (j != null) return new int[]{j, i};
        seen.put(nums[i], i);
    }
    return new int[0];
}
```

### 8. DRY RUN EXAMPLE
nums = [2, 7, 11, 15], target = 9: at i = 1 the complement 2 is in the map, return [0, 1].

### 9. FOLLOW-UP QUESTIONS
1. What if the array is sorted?
2. What if there are multiple valid pairs?
3. Can you do it with O(1) extra space?

### 10. COMMON MISTAKES
- Using the same element twice
- Returning values instead of indices

### 11. PROBLEM VARIATIONS
- 3Sum
- Two Sum II (sorted input)
"""


EVALUATION_REPLY = """Here is my evaluation.

```json
{
  "score": 8,
  "breakdown": {
    "correctness": {"score": 3, "feedback": "Correct on all cases"},
    "time_complexity": {"score": 2, "feedback": "Optimal", "detected": "O(n)"},
    "space_complexity": {"score": 1, "feedback": "Uses a map", "detected": "O(n)"},
    "code_quality": {"score": 1, "feedback": "Short variable names"},
    "edge_cases": {"score": 1, "feedback": "Handles empty input", "missing": []}
  },
  "suggestions": ["Rename variables", "Add comments"],
  "optimal_solution_hint": "A single pass with a hash map is optimal."
}
```
"""


# --- Fixtures ---

@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def embedder():
    return HashingEmbedder()


@pytest.fixture
def corpus_file(tmp_path):
    path = tmp_path / "dsa_problems.json"
    path.write_text(json.dumps([doc.model_dump(mode="json") for doc in CORPUS]), encoding="utf-8")
    return path


@pytest.fixture
def settings(tmp_path, corpus_file):
    return Settings(
        index=IndexConfig(
            dataset_path=str(corpus_file),
            embeddings_path=str(tmp_path / "embeddings.json"),
            embedding_dim=DIMENSION,
        ),
    )


@pytest.fixture
def llm():
    return FakeCompletionClient([WELL_FORMED_ANALYSIS])


@pytest.fixture
def pipeline(settings, embedder, llm, clock):
    settings.retrieval.similarity_threshold = 0.0
    return RAGPipeline(
        settings=settings,
        index=VectorIndex(DIMENSION),
        embedder=embedder,
        llm=llm,
        sessions=SessionManager(settings.interview, clock=clock),
    )
