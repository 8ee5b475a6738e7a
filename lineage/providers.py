# /lineage/providers.py

"""
Text-generation and embedding providers.

Every provider implements the same two capabilities, `TextGenerator` and
`Embedder`. Which adapter is used is decided once, from configuration, by
`create_ai_client()`.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import requests
from langchain_core.output_parsers import StrOutputParser
from langchain_google_genai import ChatGoogleGenerativeAI, GoogleGenerativeAIEmbeddings

from lineage.config import settings
from lineage.errors import EmbeddingError, GenerationError
from lineage.logger import get_logger

logger = get_logger(__name__)


class TextGenerator(ABC):
    """Capability: turn a prompt into text."""

    @abstractmethod
    def generate(self, prompt: str, *, temperature: Optional[float] = None, max_tokens: Optional[int] = None) -> str:
        """Returns the generated text, stripped. Raises GenerationError."""
        ...


class Embedder(ABC):
    """Capability: turn text into vectors."""

    @abstractmethod
    def embed(self, text: str) -> List[float]:
        """Raises EmbeddingError."""
        ...

    def embed_batch(self, texts: List[str]) -> List[List[float]]:
        return [self.embed(text) for text in texts]


class AIClient(TextGenerator, Embedder):
    provider = "unknown"

    @abstractmethod
    def test_connection(self) -> None:
        """Raises if the provider cannot be reached."""
        ...

    @abstractmethod
    def info(self) -> Dict[str, str]:
        ...


def extract_generated_text(body: Any) -> str:
    """
    Reads generated text from either provider shape:
    {"choices": [{"message": {"content": ...}}]} or {"response": ...}.
    """
    if isinstance(body, dict):
        choices = body.get("choices")
        if isinstance(choices, list) and choices:
            message = choices[0].get("message") if isinstance(choices[0], dict) else None
            content = message.get("content") if isinstance(message, dict) else None
            if isinstance(content, str):
                return content.strip()
        response = body.get("response")
        if isinstance(response, str):
            return response.strip()
    raise GenerationError(f"Unrecognized generation response: {body!r}", body=body)


def extract_embeddings(body: Any) -> List[List[float]]:
    """
    Reads one or more vectors from {"data": [{"embedding": ...}]},
    {"embeddings": [...]} or {"embedding": [...]}.
    """
    if isinstance(body, dict):
        data = body.get("data")
        if isinstance(data, list) and data:
            ordered = sorted(data, key=lambda item: item.get("index", 0)) if all(isinstance(d, dict) for d in data) else data
            try:
                return [[float(x) for x in item["embedding"]] for item in ordered]
            except (KeyError, TypeError, ValueError) as e:
                raise EmbeddingError(f"Malformed embedding data: {e}") from e
        embeddings = body.get("embeddings")
        if isinstance(embeddings, list) and embeddings and all(isinstance(v, list) for v in embeddings):
            return [[float(x) for x in vector] for vector in embeddings]
        embedding = body.get("embedding")
        if isinstance(embedding, list) and embedding:
            return [[float(x) for x in embedding]]
    raise EmbeddingError(f"Unrecognized embedding response: {body!r}")


class _HttpClient(AIClient):
    """Shared request handling for providers reached over plain JSON/HTTP."""

    def __init__(self, base_url: str, timeout: float, headers: Optional[Dict[str, str]] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = requests.Session()
        self._session.headers.update({"Content-Type": "application/json", **(headers or {})})

    def _post(self, path: str, payload: Dict[str, Any], error_cls):
        try:
            response = self._session.post(f"{self.base_url}{path}", json=payload, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise error_cls(f"{self.provider} request to {path} failed: {e}") from e

        if not response.ok:
            raise error_cls(
                f"{self.provider} request to {path} failed with status {response.status_code}",
                status=response.status_code,
                body=response.text,
            )
        try:
            return response.json()
        except ValueError as e:
            raise error_cls(f"{self.provider} returned a non-JSON body from {path}",
                            status=response.status_code, body=response.text) from e

    def _get(self, path: str) -> requests.Response:
        response = self._session.get(f"{self.base_url}{path}", timeout=self.timeout)
        response.raise_for_status()
        return response


class OpenAIClient(_HttpClient):
    provider = "OpenAI"

    def __init__(self, api_key: str, base_url: str, chat_model: str, embedding_model: str, timeout: float):
        if not api_key:
            raise ValueError("OpenAI API key not found. Set OPENAI_API_KEY in the environment or .env file.")
        super().__init__(base_url, timeout, headers={"Authorization": f"Bearer {api_key}"})
        self.chat_model = chat_model
        self.embedding_model = embedding_model

    def generate(self, prompt: str, *, temperature: Optional[float] = None, max_tokens: Optional[int] = None) -> str:
        payload = {
            "model": self.chat_model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": settings.GENERATION_TEMPERATURE if temperature is None else temperature,
            "max_tokens": max_tokens or settings.MAX_TOKENS,
        }
        return extract_generated_text(self._post("/chat/completions", payload, GenerationError))

    def embed(self, text: str) -> List[float]:
        body = self._post("/embeddings", {"model": self.embedding_model, "input": text}, EmbeddingError)
        return extract_embeddings(body)[0]

    def embed_batch(self, texts: List[str]) -> List[List[float]]:
        body = self._post("/embeddings", {"model": self.embedding_model, "input": texts}, EmbeddingError)
        vectors = extract_embeddings(body)
        if len(vectors) != len(texts):
            raise EmbeddingError(f"Asked for {len(texts)} embeddings, received {len(vectors)}.")
        return vectors

    def test_connection(self) -> None:
        self._get("/models")

    def info(self) -> Dict[str, str]:
        return {
            "provider": self.provider,
            "chat_model": self.chat_model,
            "embedding_model": self.embedding_model,
            "base_url": self.base_url,
        }


class OllamaClient(_HttpClient):
    provider = "Ollama"

    def __init__(self, base_url: str, chat_model: str, embedding_model: str, timeout: float):
        super().__init__(base_url, timeout)
        self.chat_model = chat_model
        self.embedding_model = embedding_model

    def generate(self, prompt: str, *, temperature: Optional[float] = None, max_tokens: Optional[int] = None) -> str:
        payload = {
            "model": self.chat_model,
            "prompt": prompt,
            "stream": False,
            "options": {
                "temperature": settings.GENERATION_TEMPERATURE if temperature is None else temperature,
                "num_predict": max_tokens or settings.MAX_TOKENS,
            },
        }
        return extract_generated_text(self._post("/api/generate", payload, GenerationError))

    def embed(self, text: str) -> List[float]:
        body = self._post("/api/embed", {"model": self.embedding_model, "input": text}, EmbeddingError)
        return extract_embeddings(body)[0]

    def embed_batch(self, texts: List[str]) -> List[List[float]]:
        body = self._post("/api/embed", {"model": self.embedding_model, "input": texts}, EmbeddingError)
        vectors = extract_embeddings(body)
        if len(vectors) != len(texts):
            raise EmbeddingError(f"Asked for {len(texts)} embeddings, received {len(vectors)}.")
        return vectors

    def test_connection(self) -> None:
        try:
            self._get("/api/tags")
        except requests.exceptions.ConnectionError as e:
            raise ConnectionError(f"Connection refused - is Ollama running on {self.base_url}?") from e

    def info(self) -> Dict[str, str]:
        return {
            "provider": self.provider,
            "chat_model": self.chat_model,
            "embedding_model": self.embedding_model,
            "base_url": self.base_url,
        }


class GeminiClient(AIClient):
    provider = "Gemini"

    def __init__(self, chat_model: str, embedding_model: str):
        if not settings.GOOGLE_API_KEY:
            raise ValueError("GOOGLE_API_KEY not found in environment or .env file.")
        self.chat_model = chat_model
        self.embedding_model = embedding_model
        self._embeddings = GoogleGenerativeAIEmbeddings(model=embedding_model, google_api_key=settings.GOOGLE_API_KEY)

    def generate(self, prompt: str, *, temperature: Optional[float] = None, max_tokens: Optional[int] = None) -> str:
        llm = ChatGoogleGenerativeAI(
            model=self.chat_model,
            temperature=settings.GENERATION_TEMPERATURE if temperature is None else temperature,
            max_output_tokens=max_tokens or settings.MAX_TOKENS,
            google_api_key=settings.GOOGLE_API_KEY,
        )
        chain = llm | StrOutputParser()
        try:
            return chain.invoke(prompt).strip()
        except Exception as e:
            raise GenerationError(f"Gemini generation failed: {e}") from e

    def embed(self, text: str) -> List[float]:
        try:
            return list(self._embeddings.embed_query(text))
        except Exception as e:
            raise EmbeddingError(f"Gemini embedding failed: {e}") from e

    def embed_batch(self, texts: List[str]) -> List[List[float]]:
        try:
            return [list(v) for v in self._embeddings.embed_documents(texts)]
        except Exception as e:
            raise EmbeddingError(f"Gemini batch embedding failed: {e}") from e

    def test_connection(self) -> None:
        self.embed("test")

    def info(self) -> Dict[str, str]:
        return {"provider": self.provider, "chat_model": self.chat_model, "embedding_model": self.embedding_model}


def create_ai_client(provider: Optional[str] = None) -> AIClient:
    """Builds the configured provider adapter."""
    provider = (provider or settings.AI_PROVIDER).lower()
    if provider == "openai":
        client = OpenAIClient(
            api_key=settings.OPENAI_API_KEY,
            base_url=settings.OPENAI_BASE_URL,
            chat_model=settings.OPENAI_CHAT_MODEL,
            embedding_model=settings.OPENAI_EMBEDDING_MODEL,
            timeout=settings.REQUEST_TIMEOUT_SECONDS,
        )
    elif provider == "ollama":
        client = OllamaClient(
            base_url=settings.OLLAMA_BASE_URL,
            chat_model=settings.OLLAMA_CHAT_MODEL,
            embedding_model=settings.OLLAMA_EMBEDDING_MODEL,
            timeout=settings.REQUEST_TIMEOUT_SECONDS,
        )
    elif provider == "gemini":
        client = GeminiClient(chat_model=settings.GENERATION_MODEL, embedding_model=settings.EMBEDDING_MODEL)
    else:
        raise ValueError(f"Unknown AI provider: {provider}. Supported providers: openai, ollama, gemini")

    logger.info("Initialized AI client", extra=client.info())
    return client
