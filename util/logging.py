"""
Structured operation logging for the copy reuse service.
Request text and style guides are truncated before they reach the log.
"""

import logging
from typing import Any, Dict, List

SENSITIVE_FIELDS = ['api_key', 'authorization', 'style_guide_text', 'secret', 'password']


class StructuredLogger:
    """Structured logger for corpus, retrieval, embedding and generation operations."""

    def __init__(self, name: str = "copy_reuse"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.INFO)

        # Create handler if not already set
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def log_operation(self, operation: str, status: str, details: Dict[str, Any] = None):
        """Log a structured operation."""
        message = f"Operation: {operation}, Status: {status}"
        if details:
            message += f", Details: {sanitize_payload(details)}"

        if status == "failed":
            self.logger.error(message)
        else:
            self.logger.info(message)

    def log_corpus_load(self, source: str, entries: int, dimension: int, start_time: float, end_time: float,
                        status: str = "success", error: str = None):
        """Log loading of a corpus handle."""
        duration_ms = round((end_time - start_time) * 1000, 2)
        details = {"source": source, "entries": entries, "dimension": dimension, "duration_ms": duration_ms}
        if error:
            details["error"] = error

        self.log_operation("corpus.load", status, details)

    def log_embedding(self, provider: str, text_length: int, start_time: float, end_time: float,
                      status: str = "success", error: str = None):
        """Log an embedding request."""
        details = {
            "provider": provider,
            "text_length": text_length,
            "duration_ms": round((end_time - start_time) * 1000, 2),
        }
        if error:
            details["error"] = error

        self.log_operation("embedding.generate", status, details)

    def log_retrieval(self, retriever: str, top_k: int, returned: int, start_time: float, end_time: float,
                      status: str = "success", details: Dict[str, Any] = None):
        """Log a top-K retrieval pass."""
        log_details = {
            "retriever": retriever,
            "top_k": top_k,
            "returned": returned,
            "duration_ms": round((end_time - start_time) * 1000, 2),
        }
        if details:
            log_details.update(details)

        self.log_operation("retrieval.top_k", status, log_details)

    def log_generation(self, model: str, suggestions: int, start_time: float, end_time: float,
                       status: str = "success", error: str = None):
        """Log a rewrite generation call."""
        details = {
            "model": model,
            "suggestions": suggestions,
            "duration_ms": round((end_time - start_time) * 1000, 2),
        }
        if error:
            details["error"] = error

        self.log_operation("generation.rewrite", status, details)

    def log_request_failure(self, operation: str, error_type: str, message: str):
        """Log a request aborted with a categorized error."""
        self.log_operation(operation, "failed", {"error_type": error_type, "message": message[:200]})


# Global logger instance
logger = StructuredLogger()


def sanitize_payload(payload: Any, reveal_sensitive: bool = False, sensitive_fields: List[str] = None) -> Any:
    """Sanitize payloads for logging."""
    if sensitive_fields is None:
        sensitive_fields = SENSITIVE_FIELDS

    if isinstance(payload, dict):
        sanitized = {}
        for k, v in payload.items():
            if reveal_sensitive or k not in sensitive_fields:
                sanitized[k] = sanitize_payload(v, reveal_sensitive, sensitive_fields)
            else:
                sanitized[k] = "[REDACTED]"
        return sanitized
    elif isinstance(payload, str):
        # Truncate long strings
        return payload[:100] + "..." if len(payload) > 100 else payload
    elif isinstance(payload, list):
        return [sanitize_payload(item, reveal_sensitive, sensitive_fields) for item in payload]
    else:
        return payload
