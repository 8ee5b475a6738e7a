# /lineage/database.py

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import requests
from neo4j import GraphDatabase
from neo4j.exceptions import DriverError, Neo4jError
from neo4j.graph import Node, Path, Relationship

from lineage.config import settings
from lineage.errors import ExecutionError
from lineage.logger import get_logger

logger = get_logger(__name__)

GraphResponse = Dict[str, Any]

class GraphDBInterface(ABC):
    """
    An abstract base class for the graph store. Every implementation answers with
    the transactional-endpoint payload: {"results": [{"columns", "data": [{"row"}]}], "errors": []}.
    """
    @abstractmethod
    def execute_query(self, query: str, params: Optional[Dict] = None) -> GraphResponse:
        pass

    @abstractmethod
    def test_connection(self) -> None:
        pass

    @abstractmethod
    def close(self):
        pass


class Neo4jHttpDatabase(GraphDBInterface):
    """Talks to Neo4j through its HTTP transactional endpoint."""
    def __init__(self, base_url: str = None, username: str = None, password: str = None,
                 database: str = None, timeout: float = None):
        self.base_url = (base_url or settings.NEO4J_HTTP_URL).rstrip("/")
        self.database = database or settings.NEO4J_DATABASE
        self.timeout = timeout or settings.REQUEST_TIMEOUT_SECONDS
        self._session = requests.Session()
        self._session.auth = (username or settings.NEO4J_USERNAME, password or settings.NEO4J_PASSWORD)
        self._session.headers.update({"Content-Type": "application/json", "Accept": "application/json"})

    @property
    def commit_url(self) -> str:
        return f"{self.base_url}/db/{self.database}/tx/commit"

    def execute_query(self, query: str, params: Optional[Dict] = None) -> GraphResponse:
        body = {"statements": [{"statement": query, "parameters": params or {}}]}
        try:
            response = self._session.post(self.commit_url, json=body, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise ExecutionError(f"Neo4j is unreachable: {e}") from e

        if not response.ok:
            raise ExecutionError(f"HTTP {response.status_code}: {response.text}",
                                 status=response.status_code, body=response.text)
        try:
            payload = response.json()
        except ValueError as e:
            raise ExecutionError("Neo4j returned a non-JSON body",
                                 status=response.status_code, body=response.text) from e

        if not isinstance(payload, dict) or not isinstance(payload.get("results"), list):
            raise ExecutionError("Unexpected Neo4j response format",
                                 status=response.status_code, body=payload)

        # Cypher errors come back as 200 with a non-empty "errors" list.
        errors = payload.get("errors") or []
        if errors:
            messages = "; ".join(
                f"{e.get('code', 'Error')}: {e.get('message', '')}" if isinstance(e, dict) else str(e)
                for e in errors
            )
            raise ExecutionError(messages, status=response.status_code, body=payload)

        return payload

    def test_connection(self) -> None:
        try:
            response = self._session.get(f"{self.base_url}/", timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise ExecutionError(f"Neo4j HTTP connection failed: {e}") from e
        if response.status_code != 200:
            raise ExecutionError(f"Neo4j HTTP connection failed with status: {response.status_code}",
                                 status=response.status_code, body=response.text)
        logger.info("Neo4j HTTP connection test successful")

    def close(self):
        self._session.close()


class Neo4jDatabase(GraphDBInterface):
    """Bolt implementation. Records are re-shaped into the HTTP payload format."""
    def __init__(self, uri: str = None, username: str = None, password: str = None, database: str = None):
        uri = uri or settings.NEO4J_URI
        auth = (username or settings.NEO4J_USERNAME, password or settings.NEO4J_PASSWORD)
        self.database = database or settings.NEO4J_DATABASE
        self._driver = GraphDatabase.driver(uri, auth=auth)

    def execute_query(self, query: str, params: Optional[Dict] = None) -> GraphResponse:
        try:
            with self._driver.session(database=self.database) as session:
                result = session.run(query, params or {})
                columns = list(result.keys())
                data = [{"row": [to_wire_value(value) for value in record.values()]} for record in result]
        except (Neo4jError, DriverError) as e:
            raise ExecutionError(f"Query execution failed: {e}") from e
        return {"results": [{"columns": columns, "data": data}], "errors": []}

    def test_connection(self) -> None:
        try:
            self._driver.verify_connectivity()
        except (Neo4jError, DriverError) as e:
            raise ExecutionError(f"Could not connect to Neo4j: {e}") from e
        logger.info("Neo4j Bolt connection test successful")

    def close(self):
        self._driver.close()


def to_wire_value(value: Any) -> Any:
    """Converts driver objects to what the HTTP endpoint would have sent."""
    if isinstance(value, Node):
        return {key: to_wire_value(v) for key, v in value.items()}
    if isinstance(value, Relationship):
        return {key: to_wire_value(v) for key, v in value.items()}
    if isinstance(value, Path):
        # Alternating node, relationship, node ... in traversal order.
        nodes = value.nodes
        wire = [to_wire_value(nodes[0])]
        for relationship, node in zip(value.relationships, nodes[1:]):
            wire.append(to_wire_value(relationship))
            wire.append(to_wire_value(node))
        return wire
    if isinstance(value, list):
        return [to_wire_value(v) for v in value]
    if isinstance(value, dict):
        return {key: to_wire_value(v) for key, v in value.items()}
    if hasattr(value, "iso_format"):
        return value.iso_format()
    return value


def create_graph_database(transport: str = None) -> GraphDBInterface:
    transport = (transport or settings.GRAPH_TRANSPORT).lower()
    if transport == "http":
        return Neo4jHttpDatabase()
    if transport == "bolt":
        return Neo4jDatabase()
    raise ValueError(f"Unknown graph transport: {transport}. Supported transports: http, bolt")
