# /tests/test_providers.py

import unittest
from unittest.mock import MagicMock

import requests

import sys
import os
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from lineage.errors import EmbeddingError, GenerationError
from lineage.providers import (
    OllamaClient,
    OpenAIClient,
    create_ai_client,
    extract_embeddings,
    extract_generated_text,
)


def _response(body, status=200):
    response = MagicMock()
    response.ok = 200 <= status < 300
    response.status_code = status
    response.text = str(body)
    response.json.return_value = body
    return response


class TestResponseParsing(unittest.TestCase):

    def test_generated_text_shapes(self):
        self.assertEqual(extract_generated_text({"choices": [{"message": {"content": " Hi "}}]}), "Hi")
        self.assertEqual(extract_generated_text({"response": "Hello\n"}), "Hello")

    def test_unreadable_generation_body(self):
        for body in ({}, {"choices": []}, {"choices": [{"text": "x"}]}, "text", None):
            with self.assertRaises(GenerationError):
                extract_generated_text(body)

    def test_embedding_shapes(self):
        data_body = {"data": [{"index": 1, "embedding": [0, 1]}, {"index": 0, "embedding": [1, 0]}]}
        self.assertEqual(extract_embeddings(data_body), [[1.0, 0.0], [0.0, 1.0]])
        self.assertEqual(extract_embeddings({"embeddings": [[0.5, 0.5]]}), [[0.5, 0.5]])
        self.assertEqual(extract_embeddings({"embedding": [0.1, 0.2]}), [[0.1, 0.2]])

    def test_unreadable_embedding_body(self):
        for body in ({}, {"data": [{"index": 0}]}, {"embeddings": []}, {"embedding": []}, []):
            with self.assertRaises(EmbeddingError):
                extract_embeddings(body)


class TestOpenAIClient(unittest.TestCase):

    def setUp(self):
        self.client = OpenAIClient(
            api_key="sk-test",
            base_url="https://api.example.com/v1/",
            chat_model="gpt-test",
            embedding_model="embed-test",
            timeout=5,
        )
        self.client._session = MagicMock()

    def test_requires_api_key(self):
        with self.assertRaises(ValueError):
            OpenAIClient(api_key="", base_url="x", chat_model="m", embedding_model="e", timeout=1)

    def test_generate_posts_chat_completion(self):
        self.client._session.post.return_value = _response({"choices": [{"message": {"content": "Alice"}}]})

        answer = self.client.generate("Who?", temperature=0.0, max_tokens=50)

        self.assertEqual(answer, "Alice")
        url = self.client._session.post.call_args[0][0]
        payload = self.client._session.post.call_args[1]["json"]
        self.assertEqual(url, "https://api.example.com/v1/chat/completions")
        self.assertEqual(payload["model"], "gpt-test")
        self.assertEqual(payload["messages"], [{"role": "user", "content": "Who?"}])
        self.assertEqual(payload["temperature"], 0.0)
        self.assertEqual(payload["max_tokens"], 50)

    def test_non_success_status_keeps_status_and_body(self):
        self.client._session.post.return_value = _response({"error": "boom"}, status=500)

        with self.assertRaises(GenerationError) as ctx:
            self.client.generate("Who?")

        self.assertEqual(ctx.exception.status, 500)
        self.assertIn("boom", ctx.exception.body)

    def test_transport_failure(self):
        self.client._session.post.side_effect = requests.exceptions.ConnectionError("refused")

        with self.assertRaises(GenerationError):
            self.client.generate("Who?")

    def test_embed_batch_sends_list_input(self):
        self.client._session.post.return_value = _response({
            "data": [{"index": 0, "embedding": [1, 0]}, {"index": 1, "embedding": [0, 1]}],
        })

        vectors = self.client.embed_batch(["a", "b"])

        self.assertEqual(vectors, [[1.0, 0.0], [0.0, 1.0]])
        self.assertEqual(self.client._session.post.call_args[1]["json"]["input"], ["a", "b"])


class TestOllamaClient(unittest.TestCase):

    def setUp(self):
        self.client = OllamaClient(base_url="http://ollama:11434", chat_model="llama", embedding_model="nomic", timeout=5)
        self.client._session = MagicMock()

    def test_generate_disables_streaming(self):
        self.client._session.post.return_value = _response({"response": "Bob"})

        self.assertEqual(self.client.generate("Who?", max_tokens=10), "Bob")

        payload = self.client._session.post.call_args[1]["json"]
        self.assertFalse(payload["stream"])
        self.assertEqual(payload["options"]["num_predict"], 10)

    def test_embed_reads_embeddings_list(self):
        self.client._session.post.return_value = _response({"embeddings": [[0.1, 0.2, 0.3]]})

        self.assertEqual(self.client.embed("Alice"), [0.1, 0.2, 0.3])

    def test_embed_batch_count_mismatch(self):
        self.client._session.post.return_value = _response({"embeddings": [[0.1, 0.2]]})

        with self.assertRaises(EmbeddingError):
            self.client.embed_batch(["a", "b"])

    def test_connection_refused_is_explained(self):
        self.client._session.get.side_effect = requests.exceptions.ConnectionError("refused")

        with self.assertRaises(ConnectionError) as ctx:
            self.client.test_connection()

        self.assertIn("is Ollama running", str(ctx.exception))


class TestCreateAIClient(unittest.TestCase):

    def test_ollama(self):
        self.assertIsInstance(create_ai_client("ollama"), OllamaClient)

    def test_unknown_provider(self):
        with self.assertRaises(ValueError):
            create_ai_client("watson")


if __name__ == '__main__':
    unittest.main()
