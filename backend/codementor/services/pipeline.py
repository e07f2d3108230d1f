"""
RAG pipeline: the composition root of the analysis service.

Owns the vector index, the embedder, the completion client and the interview
session manager, all built from one Settings object. Routers reach it through
the `get_pipeline` dependency.

Flow of `analyze`:
1. Validate the problem and resolve the mode bundle
2. Detect interview intent (mode, trigger phrase or an existing session)
3. Retrieve context with the resolved retrieval settings
4. Build the interview or analysis prompt and run the completion
5. Return raw guidance for interview turns, parsed analysis otherwise
"""
import json
import logging
import time
from pathlib import Path
from typing import List, Optional, Tuple

from fastapi import Request

from codementor.core.config import ModeConfig, Settings
from codementor.core.embeddings import AdaptiveEmbeddings
from codementor.core.exceptions import CompletionError, InvalidInputError, SessionNotFoundError
from codementor.core.llm_client import CompletionClient, CompletionOptions
from codementor.core.prompt_templates import (
    CODE_EVALUATION_PROMPT,
    INTERVIEW_MODE_PROMPT,
    SYSTEM_PROMPT,
    build_analysis_prompt,
    build_evaluation_prompt,
    build_interview_prompt,
)
from codementor.core.response_parser import default_evaluation, parse_analysis, parse_evaluation
from codementor.core.retriever import Retriever
from codementor.core.state_transitions import is_terminal
from codementor.core.vector_index import VectorIndex
from codementor.domain.models import (
    AnalysisResult,
    AnalyzeOptions,
    Document,
    EvaluationResult,
    InterviewGuidance,
    ResultMetadata,
    SessionStatus,
    StatusResponse,
)
from codementor.services.session_manager import InterviewSession, SessionManager, keyword_pattern, strip_keyword

logger = logging.getLogger(__name__)

MIN_INPUT_LENGTH = 10
MAX_SCORE = 10

GRADES: List[Tuple[float, str, str]] = [
    (9, "Excellent", "Outstanding solution! Interview-ready quality."),
    (7, "Good", "Solid solution with minor improvements possible."),
    (5, "Fair", "Acceptable solution but needs improvement in some areas."),
    (3, "Needs Improvement", "Solution has significant issues that need addressing."),
]
INSUFFICIENT = ("Insufficient", "Solution requires major revision.")


def grade_score(score: float) -> Tuple[str, str]:
    """Map a 0-10 evaluation score to (grade, message)."""
    for threshold, grade, message in GRADES:
        if score >= threshold:
            return grade, message
    return INSUFFICIENT


def _elapsed_ms(start_time: float) -> int:
    return int((time.time() - start_time) * 1000)


def _require_text(value: Optional[str], field: str, label: str) -> str:
    if not isinstance(value, str) or len(value.strip()) < MIN_INPUT_LENGTH:
        raise InvalidInputError(f"{label} must be at least {MIN_INPUT_LENGTH} characters", field=field)
    return value.strip()


class RAGPipeline:
    def __init__(
        self,
        settings: Settings,
        index: VectorIndex,
        embedder,
        llm,
        sessions: SessionManager,
    ):
        self.settings = settings
        self.index = index
        self.embedder = embedder
        self.llm = llm
        self.sessions = sessions
        self.retriever = Retriever(index, embedder, settings.retrieval)
        self.initialized = False
        self._keyword = keyword_pattern(settings.interview.keyword)

    # ==================== Index Lifecycle ====================

    async def initialize(self) -> bool:
        """Load the snapshot (or index the corpus) and check the completion backend.

        The pipeline is marked initialized even when a step fails, so the
        service keeps running with limited functionality.
        """
        logger.info("[PIPELINE] Initializing RAG pipeline...")
        ok = True

        if not self.index.load(self.settings.index.embeddings_path):
            logger.info("[PIPELINE] No usable snapshot, indexing corpus...")
            try:
                await self.index_corpus()
            except Exception as e:
                logger.error(f"[PIPELINE] Corpus indexing failed: {e}")
                ok = False

        health = await self.llm.health_check()
        if health.get("available"):
            logger.info(f"[PIPELINE] Completion backend connected. Models: {', '.join(health.get('models', []))}")
        else:
            logger.warning("[PIPELINE] Completion backend is not available. Analysis will fail until it is.")

        self.initialized = True
        logger.info(f"[PIPELINE] RAG pipeline initialized ({len(self.index)} documents)")
        return ok

    def load_corpus(self) -> List[Document]:
        """Read the corpus file. Missing file -> empty list; malformed file -> ValueError."""
        path = Path(self.settings.index.dataset_path)
        if not path.exists():
            logger.warning(f"[PIPELINE] Dataset file not found: {path}")
            return []

        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, list):
            raise ValueError(f"Dataset {path} must contain a JSON array of problems")
        return [Document.model_validate(item) for item in data]

    async def index_corpus(self) -> int:
        """Embed the corpus into the (empty) index and write a snapshot."""
        documents = self.load_corpus()
        if not documents:
            logger.warning("[PIPELINE] Dataset is empty, nothing to index")
            return 0

        logger.info(f"[PIPELINE] Loading {len(documents)} problems from dataset")
        count = await self.retriever.index_documents(documents)
        self.index.model_id = self.embedder.model_name
        self.index.save(self.settings.index.embeddings_path)
        return count

    async def rebuild_index(self) -> int:
        self.index.reset()
        return await self.index_corpus()

    # ==================== Analysis ====================

    def is_interview_request(self, problem: str, mode: str) -> bool:
        return mode == "interview" or bool(self._keyword.search(problem))

    def _completion_options(self, bundle: ModeConfig, history=None) -> CompletionOptions:
        llm = self.settings.llm
        return CompletionOptions(
            temperature=bundle.temperature,
            max_tokens=bundle.max_tokens,
            top_p=llm.top_p,
            top_k=llm.top_k,
            repeat_penalty=llm.repeat_penalty,
            history=list(history or []),
        )

    async def analyze(
        self,
        problem: str,
        mode: str = "detailed",
        options: Optional[AnalyzeOptions] = None,
    ) -> AnalysisResult:
        options = options or AnalyzeOptions()
        problem = _require_text(problem, "problem", "Problem description")
        mode = mode if mode in self.settings.modes else "detailed"

        interview = options.session_id is not None or self.is_interview_request(problem, mode)
        logger.info(f"[PIPELINE] Analyzing problem (mode: {mode}, interview: {interview}): {problem[:100]}")

        if interview and options.reveal_solution and options.session_id:
            return await self.reveal(options.session_id)

        if interview and not options.reveal_solution:
            return await self._interview_turn(problem, options.session_id)

        if interview:
            problem = strip_keyword(problem, self.settings.interview.keyword) or problem
            return await self._full_analysis(problem, "detailed", label="reveal", is_interview_mode=True)
        return await self._full_analysis(problem, mode)

    async def _full_analysis(
        self,
        problem: str,
        bundle_name: str,
        label: Optional[str] = None,
        is_interview_mode: bool = False,
        session: Optional[SessionStatus] = None,
    ) -> AnalysisResult:
        start_time = time.time()
        bundle = self.settings.mode(bundle_name)
        label = label or bundle_name

        retrieval = await self.retriever.retrieve(problem, top_k=bundle.top_k, context_format=bundle.context_format)
        prompt = build_analysis_prompt(problem, retrieval.context)

        try:
            completion = await self.llm.complete(SYSTEM_PROMPT, prompt, self._completion_options(bundle))
        except CompletionError as e:
            return AnalysisResult(
                success=False,
                mode=label,
                is_interview_mode=is_interview_mode,
                session=session,
                metadata=ResultMetadata(duration_ms=_elapsed_ms(start_time)),
                error=e.message,
            )

        duration_ms = _elapsed_ms(start_time)
        logger.info(f"[PIPELINE] Analysis completed in {duration_ms}ms ({label} mode)")

        return AnalysisResult(
            success=True,
            mode=label,
            is_interview_mode=is_interview_mode,
            structured_response=parse_analysis(completion.text),
            raw_response=completion.text,
            sources=retrieval.sources,
            session=session,
            metadata=ResultMetadata(
                duration_ms=duration_ms,
                model=completion.model,
                context_documents=len(retrieval.sources),
                tokens_generated=completion.tokens_generated,
            ),
        )

    async def _interview_turn(self, problem: str, session_id: Optional[str]) -> AnalysisResult:
        start_time = time.time()
        candidate_response = None

        if session_id:
            existing = self.sessions.get_session(session_id)
            if existing is None:
                raise SessionNotFoundError(session_id)
            history = existing.conversation_history()
            session = self.sessions.advance(session_id, problem)
            if session is None:
                raise SessionNotFoundError(session_id)
            candidate_response = problem
        else:
            if not strip_keyword(problem, self.settings.interview.keyword):
                raise InvalidInputError(
                    "Problem description is empty once the interview trigger is removed", field="problem"
                )
            session = self.sessions.create_session(problem)
            history = []

        if is_terminal(session.phase):
            return await self._reveal_session(session)

        bundle = self.settings.mode("interview")
        retrieval = await self.retriever.retrieve(
            session.problem, top_k=bundle.top_k, context_format=bundle.context_format
        )
        prompt = build_interview_prompt(session.problem, retrieval.context, session.phase, candidate_response)

        try:
            completion = await self.llm.complete(
                INTERVIEW_MODE_PROMPT, prompt, self._completion_options(bundle, history)
            )
        except CompletionError as e:
            return AnalysisResult(
                success=False,
                mode="interview",
                is_interview_mode=True,
                session=self.sessions.get_status(session.id),
                metadata=ResultMetadata(duration_ms=_elapsed_ms(start_time)),
                error=e.message,
            )

        self.sessions.record_assistant_turn(session.id, completion.text)
        logger.info(f"[PIPELINE] Interview guidance for session {session.id} ({session.phase.value})")

        return AnalysisResult(
            success=True,
            mode="interview",
            is_interview_mode=True,
            structured_response=InterviewGuidance(guidance=completion.text, phase=session.phase.value),
            raw_response=completion.text,
            sources=retrieval.sources,
            session=self.sessions.get_status(session.id),
            metadata=ResultMetadata(
                duration_ms=_elapsed_ms(start_time),
                model=completion.model,
                context_documents=len(retrieval.sources),
                tokens_generated=completion.tokens_generated,
            ),
        )

    # ==================== Sessions ====================

    async def _reveal_session(self, session: InterviewSession) -> AnalysisResult:
        status = self.sessions.get_status(session.id)
        try:
            return await self._full_analysis(
                session.problem, "detailed", label="reveal", is_interview_mode=True, session=status
            )
        finally:
            self.sessions.end(session.id)

    async def reveal(self, session_id: str) -> AnalysisResult:
        """Full analysis of the session's problem; the session ends either way."""
        session = self.sessions.force_reveal(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return await self._reveal_session(session)

    def get_session_status(self, session_id: str) -> SessionStatus:
        status = self.sessions.get_status(session_id)
        if status is None:
            raise SessionNotFoundError(session_id)
        return status

    def end_session(self, session_id: str) -> bool:
        return self.sessions.end(session_id) is not None

    # ==================== Evaluation ====================

    async def evaluate_code(
        self,
        problem: str,
        code: str,
        options: Optional[CompletionOptions] = None,
    ) -> EvaluationResult:
        """Score a solution with the rubric prompt.

        `options` replaces the evaluation sampling settings (low temperature by default).
        """
        problem = _require_text(problem, "problem", "Problem description")
        code = _require_text(code, "code", "Code")

        start_time = time.time()
        llm = self.settings.llm
        options = options or CompletionOptions(
            temperature=llm.evaluation_temperature,
            max_tokens=llm.evaluation_max_tokens,
            top_p=llm.top_p,
            top_k=llm.top_k,
            repeat_penalty=llm.repeat_penalty,
        )

        try:
            completion = await self.llm.complete(
                CODE_EVALUATION_PROMPT, build_evaluation_prompt(problem, code), options
            )
        except CompletionError as e:
            return EvaluationResult(
                success=False,
                evaluation=default_evaluation(""),
                grade=INSUFFICIENT[0],
                message="Evaluation failed",
                max_score=MAX_SCORE,
                metadata=ResultMetadata(duration_ms=_elapsed_ms(start_time)),
                error=e.message,
            )

        evaluation = parse_evaluation(completion.text)
        grade, message = grade_score(evaluation.score)
        logger.info(f"[PIPELINE] Evaluation completed. Score: {evaluation.score}/{MAX_SCORE} ({grade})")

        return EvaluationResult(
            success=True,
            evaluation=evaluation,
            grade=grade,
            message=message,
            max_score=MAX_SCORE,
            metadata=ResultMetadata(duration_ms=_elapsed_ms(start_time), model=completion.model),
        )

    # ==================== Status ====================

    def get_status(self) -> StatusResponse:
        return StatusResponse(
            initialized=self.initialized,
            document_count=len(self.index),
            dimension=self.index.dimension,
            top_k=self.settings.retrieval.top_k,
            similarity_threshold=self.settings.retrieval.similarity_threshold,
            embedding_model=self.embedder.model_name,
            llm_model=self.llm.model,
            active_sessions=self.sessions.active_count(),
            extra={"index_model": self.index.model_id},
        )


# ==================== Construction ====================

def build_pipeline(settings: Settings) -> RAGPipeline:
    """Wire the production components from settings."""
    return RAGPipeline(
        settings=settings,
        index=VectorIndex(settings.index.embedding_dim),
        embedder=AdaptiveEmbeddings(settings.embedding),
        llm=CompletionClient(settings.llm),
        sessions=SessionManager(settings.interview),
    )


def get_pipeline(request: Request) -> RAGPipeline:
    """FastAPI dependency returning the pipeline built at startup."""
    return request.app.state.pipeline
