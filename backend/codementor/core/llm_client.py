"""
Chat completion client for the local LLM.

Talks to Ollama through its OpenAI-compatible API using LangChain's
ChatOpenAI. A fresh client is built per call with the sampling options of
that call; there are no automatic retries.
"""
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI
from openai import AsyncOpenAI

from codementor.core.config import LLMConfig
from codementor.core.exceptions import CompletionError

logger = logging.getLogger(__name__)


@dataclass
class CompletionOptions:
    temperature: float = 0.7
    max_tokens: int = 4096
    top_p: float = 0.9
    top_k: int = 40
    repeat_penalty: float = 1.1
    history: List[Dict[str, str]] = field(default_factory=list)


@dataclass
class CompletionResult:
    text: str
    model: str
    token_usage: Dict[str, int] = field(default_factory=dict)
    duration_ms: int = 0

    @property
    def tokens_generated(self) -> Optional[int]:
        return self.token_usage.get("output_tokens")


# ==================== Message Helpers ====================

def create_system_message(content: str) -> SystemMessage:
    return SystemMessage(content=content)


def create_human_message(content: str) -> HumanMessage:
    return HumanMessage(content=content)


def create_ai_message(content: str) -> AIMessage:
    return AIMessage(content=content)


def build_messages(system_prompt: str, user_prompt: str, history: List[Dict[str, str]]) -> List[BaseMessage]:
    """System prompt, prior turns in order, then the new user prompt."""
    messages: List[BaseMessage] = [create_system_message(system_prompt)]
    for turn in history:
        if turn.get("role") == "assistant":
            messages.append(create_ai_message(turn.get("content", "")))
        else:
            messages.append(create_human_message(turn.get("content", "")))
    messages.append(create_human_message(user_prompt))
    return messages


# ==================== Client ====================

class CompletionClient:
    def __init__(self, config: LLMConfig):
        self.config = config

    @property
    def model(self) -> str:
        return self.config.model

    def get_llm_client(self, options: CompletionOptions) -> ChatOpenAI:
        return ChatOpenAI(
            model=self.config.model,
            base_url=self.config.base_url,
            api_key=self.config.api_key,
            temperature=options.temperature,
            max_tokens=options.max_tokens,
            top_p=options.top_p,
            timeout=self.config.timeout_seconds,
            max_retries=0,
            extra_body={"top_k": options.top_k, "repeat_penalty": options.repeat_penalty},
        )

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        options: Optional[CompletionOptions] = None,
    ) -> CompletionResult:
        options = options or CompletionOptions()
        llm = self.get_llm_client(options)
        messages = build_messages(system_prompt, user_prompt, options.history)

        start_time = time.time()
        logger.info(f"[LLM] Chat generation with {self.config.model} (max_tokens={options.max_tokens})")
        try:
            response = await llm.ainvoke(messages)
        except Exception as e:
            duration_ms = int((time.time() - start_time) * 1000)
            logger.error(f"[LLM] Generation failed after {duration_ms}ms: {e}")
            raise CompletionError(f"Completion backend error: {e}", {"duration_ms": duration_ms}) from e

        duration_ms = int((time.time() - start_time) * 1000)
        usage = dict(response.usage_metadata or {}) if hasattr(response, "usage_metadata") else {}
        model = (response.response_metadata or {}).get("model_name", self.config.model)
        logger.info(f"[LLM] Response generated in {duration_ms}ms")

        return CompletionResult(
            text=str(response.content),
            model=model,
            token_usage={k: int(v) for k, v in usage.items() if isinstance(v, int)},
            duration_ms=duration_ms,
        )

    async def health_check(self) -> Dict[str, Any]:
        """List models at the endpoint and report whether the configured one is present."""
        client = AsyncOpenAI(base_url=self.config.base_url, api_key=self.config.api_key, timeout=10, max_retries=0)
        try:
            page = await client.models.list()
        except Exception as e:
            logger.error(f"[LLM] Health check failed: {e}")
            return {"available": False, "error": str(e)}

        models = [m.id for m in page.data]
        base_name = self.config.model.split(":")[0]
        return {
            "available": True,
            "models": models,
            "current_model": self.config.model,
            "model_available": any(base_name in name for name in models),
        }
