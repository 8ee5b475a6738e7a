# /lineage/cypher_generator.py

import re
from typing import Optional

from langchain_core.prompts import PromptTemplate

from lineage.config import settings
from lineage.errors import GenerationError, SynthesisError
from lineage.logger import get_logger
from lineage.models import GeneratedQuery
from lineage.providers import TextGenerator
from lineage.schema_catalog import SchemaCatalog

logger = get_logger(__name__)

CYPHER_PROMPT = PromptTemplate.from_template("""You are an Expert Cypher query generator for a Neo4j family tree database.

{schema}

Instructions:
1. Convert the natural language query to a single valid Cypher query.
2. Return ONLY the Cypher query. No explanations and no markdown formatting.
3. Use ONLY the node label, properties and relationship types listed in the schema.
4. Match names case-insensitively with toLower(...) CONTAINS toLower(...) when the exact spelling is uncertain.
5. Return whole Person nodes or the path columns shown in the examples, not individual properties.
6. Limit results to {limit} items maximum using LIMIT {limit}.

Natural Language Query: {question}

Cypher Query:""")

_FENCE_START = re.compile(r"^\s*```[ \t]*(?:cypher|cql|sql)?[ \t]*\n?", re.IGNORECASE)
_FENCE_END = re.compile(r"\n?[ \t]*```\s*$")
_SHORTEST_PATH_TYPO = re.compile(r"\bshortest[_ ]?pa?th(?=\s*\()", re.IGNORECASE)
_UNCLOSED_PERSON_NODE = re.compile(
    r"\((\w+):Person(\s*\{[^{}]*\})?(?=\s+(?i:WHERE|RETURN|WITH|MATCH|OPTIONAL)\b|\s*$)"
)


def strip_code_fences(query: str) -> str:
    query = _FENCE_START.sub("", query)
    query = _FENCE_END.sub("", query)
    query = query.strip()
    if len(query) > 1 and query.startswith("`") and query.endswith("`"):
        query = query.strip("`").strip()
    return query


def fix_shortest_path(query: str) -> str:
    return _SHORTEST_PATH_TYPO.sub("shortestPath", query)


def repair_sibling_query(query: str) -> str:
    """
    Sibling queries come back with the sibling node pattern unclosed, e.g.
    `MATCH (parent)-[:PARENT_OF]->(sibling:Person WHERE ...`.
    """
    if "<-[:PARENT_OF]-" not in query or "-[:PARENT_OF]->" not in query:
        return query
    return _UNCLOSED_PERSON_NODE.sub(lambda m: f"({m.group(1)}:Person{m.group(2) or ''})", query)


def sanitize_cypher(raw_query: str) -> str:
    """Applies every known repair to model output. Idempotent."""
    query = strip_code_fences(raw_query)
    query = fix_shortest_path(query)
    query = repair_sibling_query(query)
    return query.strip()


class CypherGenerator:
    """Turns a question into Cypher using the schema catalog as grounding."""

    def __init__(self, generator: TextGenerator, catalog: Optional[SchemaCatalog] = None):
        self.generator = generator
        self.catalog = catalog or SchemaCatalog()
        self._schema_text = self.catalog.render()

    def build_prompt(self, question: str) -> str:
        return CYPHER_PROMPT.format(
            schema=self._schema_text,
            limit=self.catalog.result_limit,
            question=question,
        )

    def generate_query(self, question: str) -> GeneratedQuery:
        prompt = self.build_prompt(question)
        try:
            raw = self.generator.generate(prompt, temperature=settings.CYPHER_TEMPERATURE)
        except GenerationError as e:
            raise SynthesisError(f"Failed to generate Cypher query: {e}") from e

        query = sanitize_cypher(raw)
        if not query:
            raise SynthesisError(f"The model returned no usable Cypher for: {question}")

        if query != raw.strip():
            logger.info("Sanitized generated Cypher", extra={"raw": raw, "cypher": query})
        logger.info(f"Generated Cypher query: {query}")
        return GeneratedQuery(raw_text=query)
