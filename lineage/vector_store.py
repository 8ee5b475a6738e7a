# /lineage/vector_store.py

from typing import List, Sequence, Tuple
import numpy as np

from lineage.errors import EmptyCorpus
from lineage.models import Document

class EmbeddingIndex:
    """
    A small in-memory vector store. Built once from (text, embedding) pairs and
    read-only afterwards, so concurrent searches need no locking.
    """
    def __init__(self, documents: Sequence[Document]):
        if not documents:
            raise EmptyCorpus("Cannot build an embedding index from zero documents.")

        matrix = np.asarray([doc.embedding for doc in documents], dtype=np.float32)
        if matrix.ndim != 2 or matrix.shape[1] == 0:
            raise ValueError("All embeddings must be non-empty vectors of the same length.")

        self._documents = tuple(documents)
        self._matrix = _normalize_rows(matrix)
        self._matrix.setflags(write=False)

    @classmethod
    def build(cls, documents_with_embeddings: Sequence[Tuple[str, Sequence[float]]]) -> "EmbeddingIndex":
        documents = [
            Document(text=text, embedding=[float(x) for x in embedding])
            for text, embedding in documents_with_embeddings
        ]
        return cls(documents)

    @property
    def documents(self) -> Tuple[Document, ...]:
        return self._documents

    @property
    def dimensions(self) -> int:
        return int(self._matrix.shape[1])

    def __len__(self) -> int:
        return len(self._documents)

    def search(self, query_vector: Sequence[float], k: int = 3) -> List[Tuple[str, float]]:
        """
        Returns the k documents most similar to the query as (text, score) pairs.

        Scores are cosine similarities in [-1, 1], highest first. Equal scores keep
        insertion order. Asking for more than the corpus returns all of it.
        """
        if k < 1:
            raise ValueError("k must be at least 1")

        query = np.asarray(query_vector, dtype=np.float32).reshape(-1)
        if query.shape[0] != self.dimensions:
            raise ValueError(
                f"Query vector has {query.shape[0]} dimensions, index has {self.dimensions}."
            )

        norm = np.linalg.norm(query)
        if norm > 0:
            query = query / norm
        scores = np.clip(self._matrix @ query, -1.0, 1.0)

        order = np.argsort(-scores, kind="stable")[:k]
        return [(self._documents[i].text, float(scores[i])) for i in order]


def _normalize_rows(matrix: np.ndarray) -> np.ndarray:
    norms = np.linalg.norm(matrix, axis=1, keepdims=True)
    # Zero vectors stay zero and score 0 against everything.
    norms[norms == 0] = 1.0
    return matrix / norms
