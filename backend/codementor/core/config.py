"""
Application configuration.

All settings are collected once at startup into a single `Settings` object
and passed explicitly to each component. Environment variables (optionally
loaded from a .env file) are only read inside `Settings.from_env()`.
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv


BACKEND_DIR = Path(__file__).resolve().parents[2]
DATA_DIR = BACKEND_DIR / "data"


# ================================
# Component configs
# ================================

@dataclass
class IndexConfig:
    dataset_path: str = str(DATA_DIR / "dsa_problems.json")
    embeddings_path: str = str(DATA_DIR / "embeddings.json")
    embedding_dim: int = 384


@dataclass
class RetrievalConfig:
    top_k: int = 2
    similarity_threshold: float = 0.7
    chunk_size: int = 500
    minimal_approach_chars: int = 200


@dataclass
class EmbeddingConfig:
    primary_model: str = "all-MiniLM-L6-v2"
    fallback_model: str = "nomic-embed-text"
    fallback_base_url: str = "http://localhost:11434/v1"
    dimension: int = 384
    cache_size: int = 1000
    timeout_seconds: int = 30
    sticky_fallback: bool = True


@dataclass
class LLMConfig:
    base_url: str = "http://localhost:11434/v1"
    model: str = "llama3:8b-instruct-q4_K_M"
    api_key: str = "ollama"
    timeout_seconds: int = 300
    temperature: float = 0.7
    max_tokens: int = 4096
    top_p: float = 0.9
    top_k: int = 40
    repeat_penalty: float = 1.1
    evaluation_temperature: float = 0.3
    evaluation_max_tokens: int = 2048


@dataclass
class InterviewConfig:
    keyword: str = "interview mode"
    max_interactions: int = 3
    session_timeout_minutes: float = 30.0
    sweep_interval_minutes: float = 5.0


@dataclass
class ModeConfig:
    max_tokens: int
    temperature: float
    top_k: int
    context_format: str


def default_modes() -> Dict[str, ModeConfig]:
    return {
        "quick": ModeConfig(max_tokens=600, temperature=0.2, top_k=1, context_format="minimal"),
        "detailed": ModeConfig(max_tokens=1200, temperature=0.3, top_k=2, context_format="full"),
        "interview": ModeConfig(max_tokens=600, temperature=0.5, top_k=2, context_format="hints"),
    }


# ================================
# Settings
# ================================

@dataclass
class Settings:
    index: IndexConfig = field(default_factory=IndexConfig)
    retrieval: RetrievalConfig = field(default_factory=RetrievalConfig)
    embedding: EmbeddingConfig = field(default_factory=EmbeddingConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    interview: InterviewConfig = field(default_factory=InterviewConfig)
    modes: Dict[str, ModeConfig] = field(default_factory=default_modes)
    allowed_origins: List[str] = field(default_factory=lambda: ["http://localhost:5173"])
    log_level: str = "INFO"

    def mode(self, name: Optional[str]) -> ModeConfig:
        """Parameter bundle for a mode; unknown names resolve to 'detailed'."""
        return self.modes.get(name or "detailed", self.modes["detailed"])

    @classmethod
    def from_env(cls, env_path: Optional[str] = None) -> "Settings":
        """Build settings from environment variables (and a .env file if present)."""
        load_dotenv(env_path)

        dimension = _env_int("EMBEDDING_DIMENSION", 384)
        top_k = _env_int("RAG_TOP_K", 2)
        ollama_url = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434").rstrip("/")
        openai_compatible_url = f"{ollama_url}/v1"

        modes = default_modes()
        modes["quick"].max_tokens = _env_int("LLM_QUICK_MAX_TOKENS", modes["quick"].max_tokens)
        modes["detailed"].max_tokens = _env_int("LLM_MAX_TOKENS", modes["detailed"].max_tokens)
        modes["detailed"].top_k = top_k

        raw_origins = os.getenv("ALLOWED_ORIGINS", "http://localhost:5173")

        return cls(
            index=IndexConfig(
                dataset_path=os.getenv("DATASET_PATH", IndexConfig.dataset_path),
                embeddings_path=os.getenv("EMBEDDINGS_PATH", IndexConfig.embeddings_path),
                embedding_dim=dimension,
            ),
            retrieval=RetrievalConfig(
                top_k=top_k,
                similarity_threshold=_env_float("RAG_SIMILARITY_THRESHOLD", 0.7),
                chunk_size=_env_int("RAG_CHUNK_SIZE", 500),
            ),
            embedding=EmbeddingConfig(
                primary_model=os.getenv("EMBEDDING_MODEL", EmbeddingConfig.primary_model),
                fallback_model=os.getenv("EMBEDDING_FALLBACK_MODEL", EmbeddingConfig.fallback_model),
                fallback_base_url=openai_compatible_url,
                dimension=dimension,
                sticky_fallback=_env_bool("EMBEDDING_STICKY_FALLBACK", True),
            ),
            llm=LLMConfig(
                base_url=openai_compatible_url,
                model=os.getenv("OLLAMA_MODEL", LLMConfig.model),
                timeout_seconds=_env_int("LLM_TIMEOUT_SECONDS", 300),
            ),
            interview=InterviewConfig(
                keyword=os.getenv("INTERVIEW_MODE_KEYWORD", InterviewConfig.keyword),
                max_interactions=_env_int("INTERVIEW_MAX_INTERACTIONS", 3),
                session_timeout_minutes=_env_float("INTERVIEW_SESSION_TIMEOUT_MINUTES", 30.0),
                sweep_interval_minutes=_env_float("INTERVIEW_SWEEP_INTERVAL_MINUTES", 5.0),
            ),
            modes=modes,
            allowed_origins=[o.strip() for o in raw_origins.split(",") if o.strip()],
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )


# ================================
# Env helpers
# ================================

def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer, got {raw!r}")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be a number, got {raw!r}")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}
