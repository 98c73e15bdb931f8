"""
Error taxonomy for the copy reuse service.
Each error carries an error_type used by the API layer to pick a response category.
"""


class CopyReuseError(Exception):
    """Base class for all copy reuse errors."""

    error_type = "server_error"


class SelectionError(CopyReuseError):
    """Raised by the top-K selector; fatal for the current selection pass."""

    error_type = "selection_error"


class InvalidArgumentError(SelectionError, ValueError):
    """Malformed construction parameters (empty query vector, non-positive k)."""

    error_type = "invalid_argument"


class DimensionMismatchError(SelectionError, ValueError):
    """A candidate vector's length disagrees with the query vector's length."""

    error_type = "corpus_corrupted"

    def __init__(self, expected: int, actual: int, label: str = None):
        self.expected = expected
        self.actual = actual
        self.label = label
        message = f"Vector dimension {actual} does not match expected dimension {expected}"
        if label is not None:
            message += f" (label: {label[:50]!r})"
        super().__init__(message)


class InvalidStateError(SelectionError, RuntimeError):
    """Selector used after finish() without an explicit reset()."""

    error_type = "invalid_state"


class EmbeddingUnavailableError(CopyReuseError):
    """The embedding provider could not produce a vector for the request."""

    error_type = "embedding_unavailable"


class CorpusUnavailableError(CopyReuseError):
    """The corpus could not be read (missing file, network or HTTP failure)."""

    error_type = "corpus_unavailable"


class CorpusCorruptedError(CopyReuseError):
    """The corpus was readable but contained malformed data."""

    error_type = "corpus_corrupted"


class GenerationUnavailableError(CopyReuseError):
    """The language model could not produce rewrite suggestions."""

    error_type = "generation_unavailable"


class InvalidRequestError(CopyReuseError):
    """A suggestion request is missing required text."""

    error_type = "invalid_request"
