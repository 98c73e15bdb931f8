"""
Environment configuration for the copy reuse service.
Values are read from the process environment, after loading a .env file if present.
"""

import os

from dotenv import load_dotenv

load_dotenv()

# Retrieval configuration
RETRIEVER = os.getenv("RETRIEVER", "scan")  # scan|remote|faiss
CORPUS_PATH = os.getenv("CORPUS_PATH", "./data/embedding.json")
CORPUS_URL = os.getenv("CORPUS_URL")
CORPUS_TIMEOUT_SEC = float(os.getenv("CORPUS_TIMEOUT_SEC", "30"))
REUSE_TOP_K = int(os.getenv("REUSE_TOP_K", "10"))
SUGGESTION_COUNT = int(os.getenv("SUGGESTION_COUNT", "10"))

# Embedding configuration
EMBED_PROVIDER = os.getenv("EMBED_PROVIDER", "openai")  # openai|sentence|hash
EMBED_MODEL_NAME = os.getenv("EMBED_MODEL_NAME", "text-embedding-ada-002")
EMBED_DIMENSION = int(os.getenv("EMBED_DIMENSION", "1536"))

# Generation configuration
LLM_PROVIDER = os.getenv("LLM_PROVIDER", "openai")  # openai|ollama|mock
LLM_MODEL = os.getenv("LLM_MODEL", "gpt-4")
LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.5"))
LLM_TIMEOUT_SEC = float(os.getenv("LLM_TIMEOUT_SEC", "60"))

# OpenAI-compatible endpoint shared by embeddings and completions
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")

# Version string
VERSION = "1.0.0"

VALID_RETRIEVERS = ["scan", "remote", "faiss"]
VALID_EMBED_PROVIDERS = ["openai", "sentence", "hash"]
VALID_LLM_PROVIDERS = ["openai", "ollama", "mock"]


def debug_enabled():
    """Check if debug mode is enabled."""
    return os.getenv("DEBUG", "false").lower() == "true"


def get_embedding_provider():
    """Get configured embedding provider implementation."""
    from ..vector.embeddings import DeterministicHashEmbedding, OpenAIEmbedding, SentenceTransformerEmbedding

    if EMBED_PROVIDER == "hash":
        return DeterministicHashEmbedding(dimension=EMBED_DIMENSION)
    elif EMBED_PROVIDER == "sentence":
        return SentenceTransformerEmbedding(EMBED_MODEL_NAME)
    elif EMBED_PROVIDER == "openai":
        return OpenAIEmbedding(
            model=EMBED_MODEL_NAME,
            base_url=OPENAI_BASE_URL,
            api_key=OPENAI_API_KEY,
        )
    raise ValueError(f"Unknown EMBED_PROVIDER: {EMBED_PROVIDER}")


def get_rewriter():
    """Get configured rewrite generator."""
    from ..agents.rewriter import MockRewriter, OllamaRewriter, OpenAIRewriter

    if LLM_PROVIDER == "mock":
        return MockRewriter()
    elif LLM_PROVIDER == "ollama":
        return OllamaRewriter(model_name=LLM_MODEL, temperature=LLM_TEMPERATURE)
    elif LLM_PROVIDER == "openai":
        return OpenAIRewriter(
            model_name=LLM_MODEL,
            temperature=LLM_TEMPERATURE,
            base_url=OPENAI_BASE_URL,
            api_key=OPENAI_API_KEY,
            timeout=LLM_TIMEOUT_SEC,
        )
    raise ValueError(f"Unknown LLM_PROVIDER: {LLM_PROVIDER}")


def get_retriever(corpus=None):
    """
    Build the configured retriever.

    The bundled corpus is loaded here, once, unless a prepared handle is passed in.
    The remote retriever needs no local corpus.
    """
    from ..vector.corpus import load_corpus
    from ..vector.index import FaissRetriever, RemoteScanRetriever, ScanRetriever

    if RETRIEVER == "remote":
        if not CORPUS_URL:
            raise ValueError("RETRIEVER=remote requires CORPUS_URL")
        return RemoteScanRetriever(CORPUS_URL, timeout=CORPUS_TIMEOUT_SEC)

    if corpus is None:
        corpus = load_corpus(CORPUS_PATH)

    if RETRIEVER == "scan":
        return ScanRetriever(corpus)
    elif RETRIEVER == "faiss":
        return FaissRetriever(corpus)
    raise ValueError(f"Unknown RETRIEVER: {RETRIEVER}")


def validate_config():
    """Validate configuration and return any issues."""
    issues = []

    if RETRIEVER not in VALID_RETRIEVERS:
        issues.append(f"Invalid RETRIEVER: {RETRIEVER}")

    if RETRIEVER == "remote" and not CORPUS_URL:
        issues.append("RETRIEVER=remote requires CORPUS_URL")

    if EMBED_PROVIDER not in VALID_EMBED_PROVIDERS:
        issues.append(f"Invalid EMBED_PROVIDER: {EMBED_PROVIDER}")

    if LLM_PROVIDER not in VALID_LLM_PROVIDERS:
        issues.append(f"Invalid LLM_PROVIDER: {LLM_PROVIDER}")

    if REUSE_TOP_K < 1:
        issues.append("REUSE_TOP_K must be >= 1")

    if SUGGESTION_COUNT < 1:
        issues.append("SUGGESTION_COUNT must be >= 1")

    if EMBED_DIMENSION < 1:
        issues.append("EMBED_DIMENSION must be >= 1")

    return issues
