"""
Nearest-neighbor lookup over the approved-copy corpus.
"""

# Package initialization for vector module
from .types import Candidate, ScoredCandidate, TopKResult
from .similarity import cosine_similarity
from .topk import StreamingTopKSelector, select_top_k
from .corpus import CorpusHandle, load_corpus, iter_corpus_file, stream_remote_corpus
from .index import IRetriever, ScanRetriever, RemoteScanRetriever, FaissRetriever
from .embeddings import IEmbeddingProvider, DeterministicHashEmbedding, SentenceTransformerEmbedding, OpenAIEmbedding

__all__ = [
    'Candidate',
    'ScoredCandidate',
    'TopKResult',
    'cosine_similarity',
    'StreamingTopKSelector',
    'select_top_k',
    'CorpusHandle',
    'load_corpus',
    'iter_corpus_file',
    'stream_remote_corpus',
    'IRetriever',
    'ScanRetriever',
    'RemoteScanRetriever',
    'FaissRetriever',
    'IEmbeddingProvider',
    'DeterministicHashEmbedding',
    'SentenceTransformerEmbedding',
    'OpenAIEmbedding'
]
