# /lineage/schema_catalog.py

import re
from dataclasses import dataclass, field
from typing import List, Optional, Set

from lineage.config import settings

# The only two relationship primitives stored in the graph. Everything else
# (siblings, cousins, in-laws) is composed from these.
PARENT_OF = "PARENT_OF"
MARRIED_TO = "MARRIED_TO"
RELATIONSHIP_PRIMITIVES = frozenset({PARENT_OF, MARRIED_TO})

CATALOG_VERSION = "3"

PERSON_PROPERTIES = (
    "name (string)",
    "birth_date (date)",
    "death_date (date)",
    "bio (string)",
    "hobbies (string)",
    "occupation (string)",
    "location (string)",
)

_REL_TYPE_PATTERN = re.compile(r"\[\s*\w*\s*:\s*([A-Z_|]+)")


@dataclass(frozen=True)
class QueryTemplate:
    name: str
    description: str
    cypher: str

    def relationship_types(self) -> Set[str]:
        found = set()
        for group in _REL_TYPE_PATTERN.findall(self.cypher):
            found.update(part for part in group.split("|") if part)
        return found


@dataclass
class SchemaCatalog:
    """Node/edge definitions and the canonical query library shown to the model."""
    ancestor_max_depth: int = field(default_factory=lambda: settings.ANCESTOR_MAX_DEPTH)
    path_max_depth: int = field(default_factory=lambda: settings.PATH_MAX_DEPTH)
    result_limit: int = field(default_factory=lambda: settings.RESULT_LIMIT)
    version: str = CATALOG_VERSION

    def templates(self) -> List[QueryTemplate]:
        depth = self.ancestor_max_depth
        return [
            QueryTemplate(
                "lookup", "Find a person by name",
                'MATCH (p:Person) WHERE toLower(p.name) CONTAINS toLower("John Doe") RETURN p',
            ),
            QueryTemplate(
                "children", "Find all children of a person",
                'MATCH (parent:Person {name: "John Doe"})-[:PARENT_OF]->(child:Person) RETURN child',
            ),
            QueryTemplate(
                "parents", "Find the parents of a person",
                'MATCH (parent:Person)-[:PARENT_OF]->(child:Person {name: "Jane Doe"}) RETURN parent',
            ),
            QueryTemplate(
                "spouse", "Find the spouse of a person",
                'MATCH (p1:Person {name: "John Doe"})-[:MARRIED_TO]-(p2:Person) RETURN p2',
            ),
            QueryTemplate(
                "siblings", "Find siblings of a person (people with the same parents)",
                'MATCH (person:Person {name: "John Doe"})<-[:PARENT_OF]-(parent:Person)\n'
                'MATCH (parent)-[:PARENT_OF]->(sibling:Person)\n'
                'WHERE sibling <> person\n'
                'RETURN DISTINCT sibling',
            ),
            QueryTemplate(
                "grandparents", "Find the grandparents of a person as a path",
                'MATCH p = (grandparent:Person)-[:PARENT_OF]->(:Person)-[:PARENT_OF]->(child:Person {name: "Jane Doe"})\n'
                'RETURN p AS path, [r IN relationships(p) | type(r)] AS relationship_types, length(p) AS path_length',
            ),
            QueryTemplate(
                "cousins", "Find cousins of a person (children of the parents' siblings)",
                'MATCH (person:Person {name: "John Doe"})<-[:PARENT_OF]-(parent:Person)<-[:PARENT_OF]-(gp:Person)\n'
                'MATCH (gp)-[:PARENT_OF]->(aunt_uncle:Person)-[:PARENT_OF]->(cousin:Person)\n'
                'WHERE aunt_uncle <> parent\n'
                'RETURN DISTINCT cousin',
            ),
            QueryTemplate(
                "parents_in_law", "Find the parents-in-law of a person",
                'MATCH (person:Person {name: "John Doe"})-[:MARRIED_TO]-(spouse:Person)<-[:PARENT_OF]-(in_law:Person)\n'
                'RETURN DISTINCT in_law',
            ),
            QueryTemplate(
                "descendants", f"Find all descendants of a person (at most {depth} generations)",
                f'MATCH (ancestor:Person {{name: "John Doe"}})-[:PARENT_OF*1..{depth}]->(descendant:Person) '
                'RETURN DISTINCT descendant',
            ),
            QueryTemplate(
                "ancestors", f"Find all ancestors of a person (at most {depth} generations)",
                f'MATCH (ancestor:Person)-[:PARENT_OF*1..{depth}]->(descendant:Person {{name: "Jane Doe"}}) '
                'RETURN DISTINCT ancestor',
            ),
            QueryTemplate(
                "shortest_path", "How two people are related",
                f'MATCH p = shortestPath((a:Person {{name: "John Doe"}})-[:PARENT_OF|MARRIED_TO*..{self.path_max_depth}]-'
                '(b:Person {name: "Jane Doe"}))\n'
                'RETURN p AS path, [r IN relationships(p) | type(r)] AS relationship_types, length(p) AS path_length,\n'
                '       [r IN relationships(p) | startNode(r).name] AS relationship_starts',
            ),
            QueryTemplate(
                "by_location", "Find people who live in a place",
                'MATCH (p:Person) WHERE toLower(p.location) CONTAINS toLower("Boston") RETURN p',
            ),
            QueryTemplate(
                "by_occupation", "Find people with an occupation",
                'MATCH (p:Person) WHERE toLower(p.occupation) CONTAINS toLower("engineer") RETURN p',
            ),
            QueryTemplate(
                "count", "Count the children of a person",
                'MATCH (:Person {name: "John Doe"})-[:PARENT_OF]->(child:Person) RETURN count(child) AS children',
            ),
            QueryTemplate(
                "children_collected", "List each parent with all of their children",
                'MATCH (parent:Person)-[:PARENT_OF]->(child:Person) '
                'RETURN parent, collect(child) AS children',
            ),
        ]

    def template(self, name: str) -> Optional[QueryTemplate]:
        return next((t for t in self.templates() if t.name == name), None)

    def render(self) -> str:
        """The catalog as prompt text."""
        lines = [
            f"Neo4j Database Schema for Family Tree (catalog v{self.version}):",
            "",
            "Node Types:",
            "- Person: Represents a family member",
            f"  Properties: {', '.join(PERSON_PROPERTIES)}",
            "",
            "Relationship Types:",
            f"- {PARENT_OF}: Connects a parent to their child (directed)",
            f"- {MARRIED_TO}: Connects spouses (query it without direction)",
            "No other relationship types exist. Siblings, grandparents, cousins and in-laws",
            f"must be derived by combining {PARENT_OF} and {MARRIED_TO}.",
            "",
            "Example Queries:",
        ]
        for number, template in enumerate(self.templates(), start=1):
            lines.append(f"{number}. {template.description}:")
            lines.extend(f"   {line}" for line in template.cypher.splitlines())
            lines.append("")
        return "\n".join(lines).rstrip()
