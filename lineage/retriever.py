# /lineage/retriever.py

from abc import ABC, abstractmethod
from typing import List, Tuple

from ingestion.engine import IngestionEngine
from ingestion.sources import JsonCorpusSource
from lineage.composer import AnswerComposer
from lineage.config import settings
from lineage.cypher_generator import CypherGenerator
from lineage.database import GraphDBInterface, create_graph_database
from lineage.errors import ExecutionError, SynthesisError
from lineage.graph_executor import GraphExecutor
from lineage.logger import get_logger
from lineage.models import GeneratedQuery, NormalizedRow
from lineage.narrator import narrate
from lineage.providers import AIClient, create_ai_client
from lineage.schema_catalog import SchemaCatalog
from lineage.vector_store import EmbeddingIndex

logger = get_logger(__name__)


class RAGPipeline(ABC):
    @abstractmethod
    def one_shot(self, question: str) -> str:
        """Answers one question. Failures come back as text."""
        pass

    def close(self):
        pass


class VectorRAG(RAGPipeline):
    """Path A: embedding similarity over the flattened family records."""
    def __init__(self, ai_client: AIClient, index: EmbeddingIndex,
                 top_k: int = None, relevance_floor: float = None):
        self.ai_client = ai_client
        self.index = index
        self.composer = AnswerComposer(ai_client)
        self.top_k = top_k or settings.TOP_K
        self.relevance_floor = settings.RELEVANCE_FLOOR if relevance_floor is None else relevance_floor

    def similarity_search(self, question: str, k: int = None) -> List[Tuple[str, float]]:
        query_embedding = self.ai_client.embed(question)
        return self.index.search(query_embedding, k or self.top_k)

    def retrieve(self, question: str) -> List[Tuple[str, float]]:
        hits = self.similarity_search(question)
        relevant = [(doc, score) for doc, score in hits if score >= self.relevance_floor]
        for position, (doc, score) in enumerate(relevant, start=1):
            logger.info(f"Relevant document {position} (score {score:.3f}): {doc[:100]}...")
        return relevant

    def one_shot(self, question: str) -> str:
        documents = [doc for doc, _ in self.retrieve(question)]
        context = "\n\n".join(documents)
        return self.composer.compose_or_fallback(question, context, fallback_text=context)


class GraphRAG(RAGPipeline):
    """Path B: question -> Cypher -> Neo4j -> narration -> answer."""
    def __init__(self, ai_client: AIClient, db_client: GraphDBInterface, catalog: SchemaCatalog = None):
        self.ai_client = ai_client
        self.db_client = db_client
        self.cypher_generator = CypherGenerator(ai_client, catalog)
        self.executor = GraphExecutor(db_client)
        self.composer = AnswerComposer(ai_client)

    def query_knowledge_graph(self, question: str) -> Tuple[List[NormalizedRow], GeneratedQuery]:
        logger.info("Step 1: Converting natural language to Cypher query...")
        query = self.cypher_generator.generate_query(question)
        logger.info("Step 2: Executing Cypher query against Neo4j...")
        rows = self.executor.execute(query)
        return rows, query

    def one_shot(self, question: str) -> str:
        logger.info(f"Executing plan for query: {question}")
        try:
            rows, _ = self.query_knowledge_graph(question)
        except (SynthesisError, ExecutionError) as e:
            logger.error(f"Plan execution failed: {e}")
            return f"Query failed: {e}"

        logger.info("Step 3: Formatting final response...")
        narration = narrate(rows, question)
        if not rows:
            return narration
        return self.composer.compose_or_fallback(question, narration, fallback_text=narration)

    def close(self):
        self.db_client.close()


def build_pipeline(mode: str = None) -> RAGPipeline:
    """
    Performs the expensive one-time setup for the configured path. Raises on
    any failure; the caller decides whether that means degraded mode.
    """
    mode = (mode or settings.RAG_MODE).lower()
    logger.info(f"Initializing {mode} pipeline...")

    ai_client = create_ai_client()
    ai_client.test_connection()

    if mode == "vector":
        index = IngestionEngine(JsonCorpusSource(settings.CORPUS_PATH), ai_client).run()
        return VectorRAG(ai_client, index)

    if mode == "graph":
        db_client = create_graph_database()
        try:
            db_client.test_connection()
        except ExecutionError as e:
            if settings.GRAPH_REQUIRED_AT_STARTUP:
                db_client.close()
                raise
            logger.warning(f"Neo4j connection test failed: {e}. Continuing - queries may fail if Neo4j is not available")
        return GraphRAG(ai_client, db_client)

    raise ValueError(f"Unknown RAG mode: {mode}. Supported modes: vector, graph")
