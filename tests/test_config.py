import json

import pytest
from unittest.mock import patch

from copyreuse.agents.rewriter import MockRewriter, OllamaRewriter, OpenAIRewriter
from copyreuse.core import config
from copyreuse.core.errors import CorpusCorruptedError
from copyreuse.vector.corpus import CorpusHandle
from copyreuse.vector.embeddings import DeterministicHashEmbedding, OpenAIEmbedding, SentenceTransformerEmbedding
from copyreuse.vector.index import RemoteScanRetriever, ScanRetriever
from copyreuse.vector.types import Candidate


def test_defaults_are_valid():
    with patch.object(config, "RETRIEVER", "scan"), \
         patch.object(config, "EMBED_PROVIDER", "openai"), \
         patch.object(config, "LLM_PROVIDER", "openai"):
        assert config.validate_config() == []


def test_validate_config_reports_issues():
    with patch.object(config, "RETRIEVER", "pinecone"), \
         patch.object(config, "EMBED_PROVIDER", "cohere"), \
         patch.object(config, "LLM_PROVIDER", "claude"), \
         patch.object(config, "REUSE_TOP_K", 0), \
         patch.object(config, "SUGGESTION_COUNT", 0):
        issues = config.validate_config()

    assert "Invalid RETRIEVER: pinecone" in issues
    assert "Invalid EMBED_PROVIDER: cohere" in issues
    assert "Invalid LLM_PROVIDER: claude" in issues
    assert "REUSE_TOP_K must be >= 1" in issues
    assert "SUGGESTION_COUNT must be >= 1" in issues


def test_remote_requires_url():
    with patch.object(config, "RETRIEVER", "remote"), patch.object(config, "CORPUS_URL", None):
        assert "RETRIEVER=remote requires CORPUS_URL" in config.validate_config()
        with pytest.raises(ValueError):
            config.get_retriever()


@pytest.mark.parametrize("provider, expected", [
    ("hash", DeterministicHashEmbedding),
    ("sentence", SentenceTransformerEmbedding),
    ("openai", OpenAIEmbedding),
])
def test_embedding_provider_factory(provider, expected):
    with patch.object(config, "EMBED_PROVIDER", provider):
        assert isinstance(config.get_embedding_provider(), expected)


@pytest.mark.parametrize("provider, expected", [
    ("mock", MockRewriter),
    ("ollama", OllamaRewriter),
    ("openai", OpenAIRewriter),
])
def test_rewriter_factory(provider, expected):
    with patch.object(config, "LLM_PROVIDER", provider):
        assert isinstance(config.get_rewriter(), expected)


def test_unknown_providers_raise():
    with patch.object(config, "EMBED_PROVIDER", "cohere"):
        with pytest.raises(ValueError):
            config.get_embedding_provider()
    with patch.object(config, "LLM_PROVIDER", "claude"):
        with pytest.raises(ValueError):
            config.get_rewriter()


def test_scan_retriever_uses_prepared_corpus():
    corpus = CorpusHandle([Candidate("Save", [1.0, 0.0])])

    with patch.object(config, "RETRIEVER", "scan"):
        retriever = config.get_retriever(corpus)

    assert isinstance(retriever, ScanRetriever)
    assert retriever.retrieve([1.0, 0.0], 1).labels() == ["Save"]


def test_scan_retriever_loads_corpus_path(tmp_path):
    path = tmp_path / "embedding.json"
    path.write_text(json.dumps([{"line": "Save", "embedding": [1.0, 0.0]}]), encoding="utf-8")

    with patch.object(config, "RETRIEVER", "scan"), patch.object(config, "CORPUS_PATH", str(path)):
        retriever = config.get_retriever()

    assert retriever.describe()["corpus_size"] == 1


def test_corrupted_corpus_path(tmp_path):
    path = tmp_path / "embedding.json"
    path.write_text("[{", encoding="utf-8")

    with patch.object(config, "RETRIEVER", "scan"), patch.object(config, "CORPUS_PATH", str(path)):
        with pytest.raises(CorpusCorruptedError):
            config.get_retriever()


def test_remote_retriever_does_not_touch_network():
    with patch.object(config, "RETRIEVER", "remote"), \
         patch.object(config, "CORPUS_URL", "https://corpus.test/embedding.json"):
        retriever = config.get_retriever()

    assert isinstance(retriever, RemoteScanRetriever)
    assert retriever.url == "https://corpus.test/embedding.json"


def test_debug_flag(monkeypatch):
    monkeypatch.setenv("DEBUG", "true")
    assert config.debug_enabled() is True
    monkeypatch.setenv("DEBUG", "false")
    assert config.debug_enabled() is False
