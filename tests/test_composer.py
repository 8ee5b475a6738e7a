# /tests/test_composer.py

import unittest
from unittest.mock import MagicMock

import sys
import os
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from lineage.composer import NO_CONTEXT_ANSWER, REFUSAL, AnswerComposer
from lineage.errors import GenerationError


class TestAnswerComposer(unittest.TestCase):

    def setUp(self):
        self.mock_generator = MagicMock()
        self.composer = AnswerComposer(self.mock_generator)

    def test_compose_sends_context_and_question(self):
        """
        Tests that the prompt carries the refusal rule, the context and the question.
        """
        # Arrange
        self.mock_generator.generate.return_value = "  Alice is the parent of Bob.  "

        # Act
        answer = self.composer.compose("Who is Bob's parent?", "1. Alice is the parent of Bob")

        # Assert
        self.assertEqual(answer, "Alice is the parent of Bob.")
        prompt = self.mock_generator.generate.call_args[0][0]
        self.assertIn(REFUSAL, prompt)
        self.assertIn("1. Alice is the parent of Bob", prompt)
        self.assertIn("Who is Bob's parent?", prompt)

    def test_empty_context_skips_the_model(self):
        answer = self.composer.compose("Who is Bob's parent?", "   ")

        self.assertEqual(answer, NO_CONTEXT_ANSWER)
        self.mock_generator.generate.assert_not_called()

    def test_empty_answer_is_an_error(self):
        self.mock_generator.generate.return_value = "   "

        with self.assertRaises(GenerationError):
            self.composer.compose("Who is Bob's parent?", "Alice")

    def test_fallback_returns_raw_results(self):
        self.mock_generator.generate.side_effect = GenerationError("quota exceeded", status=429)

        answer = self.composer.compose_or_fallback("Who is Bob's parent?", "ctx", "1. Alice")

        self.assertEqual(answer, "Results for 'Who is Bob's parent?':\n1. Alice")

    def test_fallback_not_used_on_success(self):
        self.mock_generator.generate.return_value = "Alice."

        answer = self.composer.compose_or_fallback("Who is Bob's parent?", "ctx", "1. Alice")

        self.assertEqual(answer, "Alice.")


if __name__ == '__main__':
    unittest.main()
