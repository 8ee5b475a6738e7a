# /lineage/errors.py

from typing import Any, Optional


class LineageError(Exception):
    """Base class for every failure raised by the question-answering pipeline."""


class RemoteCallError(LineageError):
    """A call to an external collaborator failed. Keeps the raw status and body."""

    def __init__(self, message: str, status: Optional[int] = None, body: Any = None):
        super().__init__(message)
        self.status = status
        self.body = body


class SynthesisError(LineageError):
    """The Cypher generation call failed or returned unusable text."""


class ExecutionError(RemoteCallError):
    """The graph store could not be reached or rejected the query."""


class GenerationError(RemoteCallError):
    """A text-generation call failed or returned a body we cannot read."""


class EmbeddingError(RemoteCallError):
    """An embedding call failed or returned a body we cannot read."""


class EmptyCorpus(LineageError):
    """The embedding index was asked to build from zero documents."""


class Degraded(LineageError):
    """The pipeline never became usable; carries the initialization failure."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason
