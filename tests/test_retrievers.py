"""
Retrieval strategies: scan over a loaded corpus, remote scan, FAISS index.
"""

import json

import numpy as np
import pytest
import requests
from unittest.mock import MagicMock

from copyreuse.core.errors import CorpusUnavailableError, DimensionMismatchError, InvalidArgumentError
from copyreuse.vector.corpus import CorpusHandle
from copyreuse.vector.index import FaissRetriever, IRetriever, RemoteScanRetriever, ScanRetriever
from copyreuse.vector.types import Candidate


@pytest.fixture
def corpus():
    return CorpusHandle([
        Candidate("Save", np.array([1.0, 0.0, 0.0])),
        Candidate("Cancel", np.array([0.0, 1.0, 0.0])),
        Candidate("Save and close", np.array([0.9, 0.1, 0.0])),
        Candidate("Delete", np.array([-1.0, 0.0, 0.0])),
        Candidate("Blank", np.array([0.0, 0.0, 0.0])),
    ], source="test")


class TestScanRetriever:

    def test_implements_interface(self, corpus):
        assert isinstance(ScanRetriever(corpus), IRetriever)

    def test_ranks_by_similarity(self, corpus):
        result = ScanRetriever(corpus).retrieve(np.array([1.0, 0.0, 0.0]), top_k=3)

        assert result.labels() == ["Save", "Save and close", "Cancel"]

    def test_repeated_requests_rescan(self, corpus):
        retriever = ScanRetriever(corpus)

        first = retriever.retrieve([0.0, 1.0, 0.0], top_k=1)
        second = retriever.retrieve([1.0, 0.0, 0.0], top_k=1)

        assert first.labels() == ["Cancel"]
        assert second.labels() == ["Save"]

    def test_factory_source_opened_per_request(self):
        opened = []

        def open_stream():
            opened.append(True)
            return iter([Candidate("a", [1.0, 0.0]), Candidate("b", [0.0, 1.0])])

        retriever = ScanRetriever(open_stream)
        retriever.retrieve([1.0, 0.0], top_k=1)
        retriever.retrieve([0.0, 1.0], top_k=1)

        assert len(opened) == 2

    def test_dimension_mismatch(self, corpus):
        with pytest.raises(DimensionMismatchError):
            ScanRetriever(corpus).retrieve([1.0, 0.0], top_k=3)

    def test_invalid_top_k(self, corpus):
        with pytest.raises(InvalidArgumentError):
            ScanRetriever(corpus).retrieve([1.0, 0.0, 0.0], top_k=0)

    def test_stream_closed_after_failure(self):
        stream = MagicMock()
        stream.__iter__.return_value = iter([Candidate("bad", [1.0])])

        with pytest.raises(DimensionMismatchError):
            ScanRetriever(lambda: stream).retrieve([1.0, 0.0], top_k=1)

        stream.close.assert_called_once()

    def test_describe(self, corpus):
        assert ScanRetriever(corpus).describe() == {"retriever": "scan", "corpus_size": 5, "dimension": 3}


class TestRemoteScanRetriever:

    def _response(self, entries):
        response = MagicMock()
        response.iter_content.return_value = iter([json.dumps(entries).encode("utf-8")])
        response.__exit__.return_value = False
        return response

    def test_streams_corpus_each_request(self):
        entries = [
            {"line": "Save", "embedding": [1.0, 0.0]},
            {"line": "Cancel", "embedding": [0.0, 1.0]},
        ]
        session = MagicMock()
        session.get.side_effect = lambda *args, **kwargs: self._response(entries)
        retriever = RemoteScanRetriever("https://corpus.test/embedding.json", timeout=5, session=session)

        assert retriever.retrieve([0.0, 1.0], top_k=1).labels() == ["Cancel"]
        assert retriever.retrieve([1.0, 0.0], top_k=1).labels() == ["Save"]
        assert session.get.call_count == 2

    def test_unavailable_corpus(self):
        session = MagicMock()
        session.get.side_effect = requests.ConnectionError("refused")
        retriever = RemoteScanRetriever("https://corpus.test/embedding.json", session=session)

        with pytest.raises(CorpusUnavailableError):
            retriever.retrieve([1.0, 0.0], top_k=1)

    def test_describe(self):
        info = RemoteScanRetriever("https://corpus.test/embedding.json").describe()

        assert info == {"retriever": "remote", "corpus_url": "https://corpus.test/embedding.json"}


class TestFaissRetriever:

    @pytest.fixture(autouse=True)
    def require_faiss(self):
        pytest.importorskip("faiss")

    def test_ranks_by_similarity(self, corpus):
        result = FaissRetriever(corpus).retrieve([1.0, 0.0, 0.0], top_k=3)

        assert result.labels() == ["Save", "Save and close", "Cancel"]
        assert result.scores()[0] == pytest.approx(1.0, abs=1e-5)

    def test_zero_vectors_not_indexed(self, corpus):
        retriever = FaissRetriever(corpus)

        assert retriever.describe()["indexed"] == 4
        assert "Blank" not in retriever.retrieve([1.0, 0.0, 0.0], top_k=10).labels()

    def test_agrees_with_scan(self):
        rng = np.random.default_rng(5)
        handle = CorpusHandle([Candidate(f"line-{i}", rng.normal(size=16)) for i in range(100)])
        query = rng.normal(size=16)

        assert FaissRetriever(handle).retrieve(query, 10).labels() == ScanRetriever(handle).retrieve(query, 10).labels()

    def test_dimension_mismatch(self, corpus):
        with pytest.raises(DimensionMismatchError):
            FaissRetriever(corpus).retrieve([1.0, 0.0], top_k=3)

    def test_empty_corpus(self):
        assert len(FaissRetriever(CorpusHandle([])).retrieve([1.0, 0.0], top_k=3)) == 0

    def test_zero_query(self, corpus):
        assert len(FaissRetriever(corpus).retrieve([0.0, 0.0, 0.0], top_k=3)) == 0

    def test_invalid_top_k(self, corpus):
        with pytest.raises(InvalidArgumentError):
            FaissRetriever(corpus).retrieve([1.0, 0.0, 0.0], top_k=0)

    def test_numpy_integer_top_k(self, corpus):
        faiss_result = FaissRetriever(corpus).retrieve([1.0, 0.0, 0.0], top_k=np.int64(2))
        scan_result = ScanRetriever(corpus).retrieve([1.0, 0.0, 0.0], top_k=np.int64(2))

        assert faiss_result.labels() == scan_result.labels() == ["Save", "Save and close"]

    def test_extreme_magnitudes_indexed(self):
        handle = CorpusHandle([Candidate("huge", [1e200, 0.0]), Candidate("tiny", [0.0, 1e-200])])

        result = FaissRetriever(handle).retrieve([1e-200, 0.0], top_k=2)

        assert result.labels() == ["huge", "tiny"]
        assert result.scores()[0] == pytest.approx(1.0, abs=1e-5)
