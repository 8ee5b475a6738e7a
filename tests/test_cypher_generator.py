# /tests/test_cypher_generator.py

import unittest
from unittest.mock import MagicMock

import sys
import os
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from lineage.config import settings
from lineage.cypher_generator import CypherGenerator, sanitize_cypher
from lineage.errors import GenerationError, SynthesisError
from lineage.schema_catalog import SchemaCatalog

BROKEN_SIBLINGS = (
    'MATCH (person:Person {name: "John Doe"})<-[:PARENT_OF]-(parent:Person)\n'
    'MATCH (parent)-[:PARENT_OF]->(sibling:Person\n'
    'WHERE sibling <> person\n'
    'RETURN DISTINCT sibling'
)
FIXED_SIBLINGS = (
    'MATCH (person:Person {name: "John Doe"})<-[:PARENT_OF]-(parent:Person)\n'
    'MATCH (parent)-[:PARENT_OF]->(sibling:Person)\n'
    'WHERE sibling <> person\n'
    'RETURN DISTINCT sibling'
)


class TestSanitizeCypher(unittest.TestCase):

    def test_strips_code_fences(self):
        self.assertEqual(
            sanitize_cypher("```cypher\nMATCH (p:Person) RETURN p\n```"),
            "MATCH (p:Person) RETURN p",
        )
        self.assertEqual(
            sanitize_cypher("  ```\nMATCH (p:Person) RETURN p LIMIT 20\n```  "),
            "MATCH (p:Person) RETURN p LIMIT 20",
        )
        self.assertEqual(sanitize_cypher("`MATCH (p:Person) RETURN p`"), "MATCH (p:Person) RETURN p")

    def test_corrects_shortest_path_misspellings(self):
        for typo in ("shortestpath", "shortest_path", "ShortestPath", "shortestPth", "shortest path"):
            query = f'MATCH p = {typo}((a:Person {{name: "A"}})-[*..15]-(b:Person {{name: "B"}})) RETURN p'
            sanitized = sanitize_cypher(query)
            self.assertIn("shortestPath((a:Person", sanitized, typo)
            self.assertEqual(sanitized.count("shortestPath"), 1)

    def test_leaves_all_shortest_paths_alone(self):
        query = 'MATCH p = allShortestPaths((a:Person)-[*]-(b:Person)) RETURN p'
        self.assertEqual(sanitize_cypher(query), query)

    def test_repairs_unclosed_sibling_node(self):
        self.assertEqual(sanitize_cypher(BROKEN_SIBLINGS), FIXED_SIBLINGS)

    def test_repairs_unclosed_node_before_lowercase_clause(self):
        broken = BROKEN_SIBLINGS.replace("WHERE", "where").replace("RETURN", "return")
        fixed = FIXED_SIBLINGS.replace("WHERE", "where").replace("RETURN", "return")

        self.assertEqual(sanitize_cypher(broken), fixed)

    def test_repair_keeps_label_case_sensitive(self):
        query = (
            'MATCH (person:Person {name: "John Doe"})<-[:PARENT_OF]-(parent:Person)\n'
            'MATCH (parent)-[:PARENT_OF]->(sibling:person\n'
            'RETURN sibling'
        )
        self.assertEqual(sanitize_cypher(query), query)

    def test_repair_only_applies_to_sibling_shapes(self):
        query = 'MATCH (p:Person\nRETURN p'
        self.assertEqual(sanitize_cypher(query), query)

    def test_sanitizer_is_idempotent(self):
        samples = [
            "```cypher\nMATCH (p:Person) RETURN p\n```",
            'MATCH p = shortestpath((a:Person)-[*]-(b:Person)) RETURN p',
            BROKEN_SIBLINGS,
            FIXED_SIBLINGS,
        ]
        for sample in samples:
            once = sanitize_cypher(sample)
            self.assertEqual(sanitize_cypher(once), once)

    def test_catalog_templates_pass_through_unchanged(self):
        for template in SchemaCatalog().templates():
            self.assertEqual(sanitize_cypher(template.cypher), template.cypher.strip(), template.name)


class TestCypherGenerator(unittest.TestCase):

    def setUp(self):
        self.mock_generator = MagicMock()
        self.cypher_generator = CypherGenerator(self.mock_generator, SchemaCatalog(result_limit=5))

    def test_generate_query_grounds_prompt_and_sanitizes(self):
        self.mock_generator.generate.return_value = "```cypher\nMATCH (p:Person) RETURN p\n```"

        query = self.cypher_generator.generate_query("Who are the children of John Doe?")

        self.assertEqual(query.raw_text, "MATCH (p:Person) RETURN p")
        prompt = self.mock_generator.generate.call_args[0][0]
        self.assertIn("Who are the children of John Doe?", prompt)
        self.assertIn("PARENT_OF", prompt)
        self.assertIn("MARRIED_TO", prompt)
        self.assertIn("LIMIT 5", prompt)
        self.assertEqual(self.mock_generator.generate.call_args[1]["temperature"], settings.CYPHER_TEMPERATURE)

    def test_generation_failure_becomes_synthesis_error(self):
        self.mock_generator.generate.side_effect = GenerationError("model offline")

        with self.assertRaises(SynthesisError):
            self.cypher_generator.generate_query("Who is John Doe?")

    def test_empty_output_is_a_synthesis_error(self):
        self.mock_generator.generate.return_value = "```\n```"

        with self.assertRaises(SynthesisError):
            self.cypher_generator.generate_query("Who is John Doe?")


if __name__ == '__main__':
    unittest.main()
