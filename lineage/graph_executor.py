"""Graph query execution and normalization of the tabular response.

The transactional endpoint returns positional rows:

    {"results": [{"columns": ["parent"], "data": [{"row": [{"name": "Alice"}]}]}]}

Depending on the Cypher template, a cell can be a node property map, a
`collect()` list, a path (alternating node and relationship maps), or a scalar.
`normalize_response` turns every one of these into flat dicts and never raises.

Usage:
    executor = GraphExecutor(create_graph_database())
    rows = executor.execute(GeneratedQuery(raw_text="MATCH (p:Person) RETURN p"))
"""

from typing import Any, Dict, List

from lineage.database import GraphDBInterface
from lineage.logger import get_logger
from lineage.models import GeneratedQuery, NormalizedRow, RowShape

logger = get_logger(__name__)

PERSON_TYPE = "Person"

# Optional node properties carried over into a normalized Person.
PERSON_PROPERTIES = ("birth_date", "death_date", "bio", "biography", "hobbies", "occupation", "location")

IDENTIFIER_KEYS = ("name", "title", "id")


class GraphExecutor:
    def __init__(self, db_client: GraphDBInterface):
        self.db_client = db_client

    def execute(self, query: GeneratedQuery) -> List[NormalizedRow]:
        """Runs the query and normalizes the result. Raises ExecutionError."""
        logger.info(f"Executing Cypher query: {query.raw_text}")
        payload = self.db_client.execute_query(query.raw_text, query.parameters)
        rows = normalize_response(payload)
        logger.info(f"Query executed successfully, found {len(rows)} results")
        return rows


def normalize_response(payload: Any) -> List[NormalizedRow]:
    if not isinstance(payload, dict) or not isinstance(payload.get("results"), list):
        logger.info(f"Unexpected Neo4j response format: {payload!r}")
        return []

    rows = []
    for result_set in payload["results"]:
        if not isinstance(result_set, dict) or not isinstance(result_set.get("data"), list):
            continue
        columns = result_set.get("columns")
        for row_data in result_set["data"]:
            if isinstance(columns, list) and columns:
                rows.append(normalize_row_with_columns(row_data, columns))
            else:
                rows.append(normalize_positional_row(row_data))
    return rows


def normalize_row_with_columns(row_data: Any, columns: List[str]) -> NormalizedRow:
    if isinstance(row_data, dict) and isinstance(row_data.get("row"), list):
        mapped = dict(zip((str(c) for c in columns), row_data["row"]))
        return _finish_row(mapped)
    logger.warning(f"Unexpected row data format: {row_data!r}")
    return _coerce_unknown_row(row_data)


def normalize_positional_row(row_data: Any) -> NormalizedRow:
    """Rows from a result set without column labels."""
    if isinstance(row_data, dict) and isinstance(row_data.get("row"), list):
        mapped = {f"column_{i}": value for i, value in enumerate(row_data["row"])}
        return _finish_row(mapped)
    logger.info(f"Unexpected data row format: {row_data!r}")
    return _coerce_unknown_row(row_data)


def _coerce_unknown_row(row_data: Any) -> NormalizedRow:
    if isinstance(row_data, dict):
        return _finish_row(dict(row_data))
    return _finish_row({"value": row_data})


def _finish_row(mapped: Dict[str, Any]) -> NormalizedRow:
    formatted = {key: normalize_value(value) for key, value in mapped.items()}
    formatted = {key: value for key, value in formatted.items() if not _is_empty(value)}

    # A single node column (like "p") collapses to the node itself.
    if len(formatted) == 1:
        only = next(iter(formatted.values()))
        if isinstance(only, dict):
            return only
    return formatted


def normalize_value(value: Any) -> Any:
    if isinstance(value, dict):
        if "name" in value:
            return person_from_node(value)
        return value
    if isinstance(value, (list, tuple)):
        return [normalize_value(item) for item in value]
    return value


def person_from_node(node: Dict[str, Any]) -> Dict[str, Any]:
    person = {"name": node["name"], "type": PERSON_TYPE}
    for key in PERSON_PROPERTIES:
        if not _is_empty(node.get(key)):
            person[key] = node[key]
    return person


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, (str, list, dict)) and len(value) == 0)


def classify_row(row: NormalizedRow) -> RowShape:
    """Assigns one of the closed set of row shapes by looking at its structure."""
    if isinstance(row.get("path"), list) and isinstance(row.get("relationship_types"), list):
        return RowShape.PATH
    if row.get("type") == PERSON_TYPE and "name" in row:
        return RowShape.PERSON
    if any(isinstance(value, list) for value in row.values()):
        return RowShape.AGGREGATE
    if all(_is_scalar(value) for value in row.values()) and not any(key in row for key in IDENTIFIER_KEYS):
        return RowShape.SCALAR
    return RowShape.GENERIC


def _is_scalar(value: Any) -> bool:
    return isinstance(value, (str, int, float, bool))
