from typing import List

from ingestion.sources import DataSource, flatten_record
from lineage.errors import EmbeddingError
from lineage.logger import get_logger
from lineage.providers import Embedder
from lineage.vector_store import EmbeddingIndex

logger = get_logger(__name__)

class IngestionEngine:
    def __init__(self, data_source: DataSource, embedder: Embedder):
        self.data_source = data_source
        self.embedder = embedder

    def run(self) -> EmbeddingIndex:
        """
        Runs the ingestion pipeline:
        1. Loads the records and flattens each into one document.
        2. Embeds the documents and builds the in-memory index.
        """
        records = self.data_source.load_records()
        documents = [flatten_record(record) for record in records]

        logger.info(f"Creating embeddings for {len(documents)} documents...")
        embeddings = self._embed_documents(documents) if documents else []

        index = EmbeddingIndex.build(list(zip(documents, embeddings)))
        logger.info(f"Embedding index built with {len(index)} documents.")
        return index

    def _embed_documents(self, documents: List[str]) -> List[List[float]]:
        try:
            return self.embedder.embed_batch(documents)
        except EmbeddingError as e:
            logger.warning(f"Batch embedding failed, falling back to individual requests: {e}")

        embeddings = []
        for position, document in enumerate(documents, start=1):
            logger.info(f"Processing document {position}/{len(documents)}")
            embeddings.append(self.embedder.embed(document))
        return embeddings
