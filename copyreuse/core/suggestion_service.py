"""
Suggestion pipeline: embed -> retrieve top-K reuse lines -> generate rewrites -> post-process.

The retrieval strategy, embedding provider and rewriter are injected, so the
same pipeline serves the local scan, remote scan and index-backed variants.
"""

from dataclasses import dataclass, field
import time
from typing import List, Optional

from .errors import CopyReuseError, EmbeddingUnavailableError, InvalidRequestError
from .prompts import DEFAULT_SUGGESTION_COUNT, build_system_prompt, build_user_prompt, parse_suggestions
from ..vector.topk import DEFAULT_TOP_K
from util.logging import logger


@dataclass
class SuggestionResult:
    """Reuse lines from the corpus plus freshly generated rewrites."""
    reuse_suggestions: List[str] = field(default_factory=list)
    new_suggestions: List[str] = field(default_factory=list)
    reuse_scores: List[float] = field(default_factory=list)


class SuggestionService:
    """Runs one suggestion request end to end; any failure aborts the whole request."""

    def __init__(self, embedding_provider, retriever, rewriter,
                 top_k: int = DEFAULT_TOP_K, suggestion_count: int = DEFAULT_SUGGESTION_COUNT):
        self.embedding_provider = embedding_provider
        self.retriever = retriever
        self.rewriter = rewriter
        self.top_k = top_k
        self.suggestion_count = suggestion_count

    def embed(self, text: str) -> List[float]:
        provider_name = type(self.embedding_provider).__name__
        start_time = time.time()
        try:
            vector = self.embedding_provider.embed_text(text)
        except EmbeddingUnavailableError as e:
            logger.log_embedding(provider_name, len(text), start_time, time.time(), status="failed", error=str(e))
            raise
        except Exception as e:
            logger.log_embedding(provider_name, len(text), start_time, time.time(), status="failed", error=str(e))
            raise EmbeddingUnavailableError(f"Embedding provider {provider_name} failed: {e}") from e

        if vector is None or len(vector) == 0:
            raise EmbeddingUnavailableError(f"Embedding provider {provider_name} returned an empty vector")
        logger.log_embedding(provider_name, len(text), start_time, time.time())
        return vector

    def generate(self, node_text: str, style_guide_text: str, extra_context: Optional[str] = None) -> List[str]:
        system_prompt = build_system_prompt(style_guide_text)
        user_prompt = build_user_prompt(node_text, extra_context, count=self.suggestion_count)

        start_time = time.time()
        try:
            raw = self.rewriter.rewrite(system_prompt, user_prompt)
        except CopyReuseError as e:
            logger.log_generation(self.rewriter.model_name, 0, start_time, time.time(), status="failed", error=str(e))
            raise

        suggestions = parse_suggestions(raw, limit=self.suggestion_count)
        logger.log_generation(self.rewriter.model_name, len(suggestions), start_time, time.time())
        return suggestions

    def suggest(self, node_text: str, style_guide_text: str, extra_context: Optional[str] = None) -> SuggestionResult:
        """
        Produce reuse and rewrite suggestions for one piece of UI copy.

        Args:
            node_text: the copy to rewrite
            style_guide_text: style guide the rewrites must follow
            extra_context: optional spec or context for the copy

        Raises:
            InvalidRequestError: node_text or style_guide_text is missing
            EmbeddingUnavailableError: the query embedding could not be computed
            CorpusUnavailableError: the corpus could not be read
            CorpusCorruptedError, DimensionMismatchError: the corpus is malformed
                or was embedded with a different model than the query
            GenerationUnavailableError: the language model call failed
        """
        if not node_text or not node_text.strip() or not style_guide_text or not style_guide_text.strip():
            raise InvalidRequestError("Missing nodeText or styleGuideText")

        query_vector = self.embed(node_text)
        reuse = self.retriever.retrieve(query_vector, self.top_k)
        new_suggestions = self.generate(node_text, style_guide_text, extra_context)

        return SuggestionResult(
            reuse_suggestions=reuse.labels(),
            new_suggestions=new_suggestions,
            reuse_scores=reuse.scores(),
        )
