# /lineage/rag_server.py

from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
import threading
from typing import Callable, Optional

from lineage.config import settings
from lineage.errors import Degraded
from lineage.logger import get_logger
from lineage.models import HealthStatus, PipelineState, PipelineStatus
from lineage.retriever import RAGPipeline, build_pipeline

logger = get_logger(__name__)

UNAVAILABLE_MESSAGE = "Service unavailable: {reason}"
NOT_STARTED_REASON = "the RAG system has not been started"
SHUT_DOWN_REASON = "the RAG system has been shut down"


class RAGServer:
    """
    Owns the single pipeline of the process.

    Initialization runs once. If it fails the server stays Degraded for the rest
    of the process lifetime and answers every question with an unavailable
    message instead of raising. Questions are handled one at a time on a single
    worker thread; a caller waits at most `timeout` seconds for its answer.
    """

    def __init__(self, initializer: Callable[[], RAGPipeline] = build_pipeline, timeout: float = None):
        self._initializer = initializer
        self.timeout = settings.ASK_TIMEOUT_SECONDS if timeout is None else timeout
        self._state = PipelineState()
        self._pipeline: Optional[RAGPipeline] = None
        self._start_lock = threading.Lock()
        self._closed = False
        self._worker = ThreadPoolExecutor(max_workers=1, thread_name_prefix="rag-server")

    @property
    def state(self) -> PipelineState:
        return self._state.model_copy()

    def start(self) -> "RAGServer":
        with self._start_lock:
            if self._state.status is not PipelineStatus.UNINITIALIZED:
                return self
            try:
                self._pipeline = self._initializer()
                self._state = PipelineState(status=PipelineStatus.READY)
                logger.info("RAG system initialized successfully")
            except Exception as e:
                reason = str(e) or type(e).__name__
                self._state = PipelineState(status=PipelineStatus.DEGRADED, failure_reason=reason)
                logger.warning(f"RAG system failed to initialize: {reason}. Starting in degraded mode.")
        return self

    def ask(self, question: str) -> str:
        try:
            pipeline = self._require_pipeline()
        except Degraded as e:
            return UNAVAILABLE_MESSAGE.format(reason=e.reason)

        try:
            future = self._worker.submit(self._answer, pipeline, question)
        except RuntimeError:
            return UNAVAILABLE_MESSAGE.format(reason=SHUT_DOWN_REASON)
        try:
            return future.result(timeout=self.timeout)
        except FutureTimeoutError:
            logger.error(f"Question timed out after {self.timeout} seconds: {question}")
            return f"Request timed out after {self.timeout:g} seconds"

    def health(self) -> HealthStatus:
        state = self._state
        if state.status is PipelineStatus.READY:
            detail = "RAG system is ready"
        elif state.status is PipelineStatus.DEGRADED:
            detail = f"RAG system is not available: {state.failure_reason}"
        else:
            detail = NOT_STARTED_REASON
        return HealthStatus(status=state.status, detail=detail)

    def ready(self) -> bool:
        return not self._closed and self._state.status is PipelineStatus.READY

    def shutdown(self):
        with self._start_lock:
            if self._closed:
                return
            self._closed = True
        self._worker.shutdown(wait=False)
        if self._pipeline is not None:
            self._pipeline.close()

    def _require_pipeline(self) -> RAGPipeline:
        if self._closed:
            raise Degraded(SHUT_DOWN_REASON)
        state = self._state
        if state.status is PipelineStatus.READY and self._pipeline is not None:
            return self._pipeline
        raise Degraded(state.failure_reason or NOT_STARTED_REASON)

    @staticmethod
    def _answer(pipeline: RAGPipeline, question: str) -> str:
        try:
            return pipeline.one_shot(question)
        except Exception as e:
            logger.exception("Error generating answer")
            return f"Error generating answer: {e}"
