from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
    """
    Centralized application settings. Pydantic's BaseSettings will automatically
    load these from environment variables or a .env file.
    """
    # --- Provider Selection ---
    AI_PROVIDER: Literal["openai", "ollama", "gemini"] = Field("openai", description="Which text-generation/embedding provider to use.")
    RAG_MODE: Literal["vector", "graph"] = Field("graph", description="'vector' answers from the embedding index, 'graph' from Cypher against Neo4j.")

    # --- OpenAI ---
    OPENAI_API_KEY: str = Field("", description="OpenAI API key.")
    OPENAI_BASE_URL: str = Field("https://api.openai.com/v1", description="Base URL of the OpenAI-compatible API.")
    OPENAI_CHAT_MODEL: str = Field("gpt-4o-mini", description="Chat model used for Cypher and answer generation.")
    OPENAI_EMBEDDING_MODEL: str = Field("text-embedding-3-small", description="Embedding model for the document corpus.")

    # --- Ollama ---
    OLLAMA_BASE_URL: str = Field("http://localhost:11434", description="Base URL of the Ollama server.")
    OLLAMA_CHAT_MODEL: str = Field("llama3.2", description="Ollama model for generation.")
    OLLAMA_EMBEDDING_MODEL: str = Field("nomic-embed-text", description="Ollama model for embeddings.")

    # --- Gemini ---
    GOOGLE_API_KEY: str = Field("", description="Google API key for Gemini.")
    GENERATION_MODEL: str = Field("gemini-2.5-flash", description="Gemini model for generation.")
    EMBEDDING_MODEL: str = Field("models/embedding-001", description="Gemini model for text embeddings.")

    # --- Generation Parameters ---
    GENERATION_TEMPERATURE: float = Field(0.1, description="Temperature for answer composition.")
    CYPHER_TEMPERATURE: float = Field(0.0, description="Temperature for Cypher generation (near-deterministic).")
    MAX_TOKENS: int = Field(500, description="Upper bound on generated tokens per call.")
    REQUEST_TIMEOUT_SECONDS: float = Field(60.0, description="Timeout for a single provider or graph-store HTTP call.")

    # --- Neo4j Database ---
    GRAPH_TRANSPORT: Literal["http", "bolt"] = Field("http", description="Use the transactional HTTP endpoint or the Bolt driver.")
    NEO4J_HTTP_URL: str = Field("http://localhost:7474", description="Base URL of the Neo4j HTTP API.")
    NEO4J_URI: str = Field("bolt://localhost:7687", description="Bolt URI used when GRAPH_TRANSPORT is 'bolt'.")
    NEO4J_DATABASE: str = Field("neo4j", description="Database name for the transactional endpoint.")
    NEO4J_USERNAME: str = Field("neo4j")
    NEO4J_PASSWORD: str = Field("familytree123")
    GRAPH_REQUIRED_AT_STARTUP: bool = Field(True, description="If False, a failed Neo4j connectivity check is only logged.")

    # --- System Parameters ---
    CORPUS_PATH: str = Field("data/family_data.json", description="JSON file with the family member records.")
    TOP_K: int = Field(3, description="Number of documents retrieved per question.")
    RELEVANCE_FLOOR: float = Field(0.05, description="Retrieved documents scoring below this are discarded.")
    RESULT_LIMIT: int = Field(20, description="LIMIT the generated Cypher is asked to apply.")
    ANCESTOR_MAX_DEPTH: int = Field(10, description="Hop bound for ancestor/descendant templates.")
    PATH_MAX_DEPTH: int = Field(15, description="Hop bound for the shortest-path template.")
    ASK_TIMEOUT_SECONDS: float = Field(30.0, description="How long a caller waits for an answer.")
    LOG_LEVEL: str = Field("INFO")

    model_config = SettingsConfigDict(env_file='.env', env_file_encoding='utf-8', extra='ignore')

settings = Settings()
