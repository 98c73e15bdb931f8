"""
Rewrite generators. Produce fresh UI copy options from a system and user prompt.
Every backend failure surfaces as GenerationUnavailableError.
"""

from abc import ABC, abstractmethod
import json
import os
import re
from typing import Dict, List, Optional

import ollama
import requests

from ..core.errors import GenerationUnavailableError


class IRewriter(ABC):
    """Abstract interface for rewrite generation backends."""

    def __init__(self, model_name: str, temperature: float = 0.5):
        self.model_name = model_name
        self.temperature = temperature

    @abstractmethod
    def rewrite(self, system_prompt: str, user_prompt: str) -> str:
        """
        Generate raw rewrite text for the given prompts.

        Returns:
            The model's reply, typically one option per line
        """
        pass

    def _build_messages(self, system_prompt: str, user_prompt: str) -> List[Dict[str, str]]:
        return [
            {'role': 'system', 'content': system_prompt},
            {'role': 'user', 'content': user_prompt},
        ]


class OllamaRewriter(IRewriter):
    """Rewriter backed by a local Ollama model."""

    def __init__(self, model_name: str = "llama3", temperature: float = 0.5):
        super().__init__(model_name, temperature)

    def rewrite(self, system_prompt: str, user_prompt: str) -> str:
        try:
            response = ollama.chat(
                model=self.model_name,
                messages=self._build_messages(system_prompt, user_prompt),
                options={'temperature': self.temperature}
            )
        except ollama.ResponseError as e:
            raise GenerationUnavailableError(f"Ollama model error: {e}") from e
        except Exception as e:
            # Connection failures surface as httpx or builtin ConnectionError depending on client version
            raise GenerationUnavailableError(f"Ollama is unreachable: {e}") from e

        try:
            return response['message']['content'] or ''
        except (KeyError, TypeError) as e:
            raise GenerationUnavailableError("Unexpected Ollama response shape") from e


class OpenAIRewriter(IRewriter):
    """Rewriter for any OpenAI-compatible /chat/completions endpoint."""

    def __init__(
        self,
        model_name: str = "gpt-4",
        temperature: float = 0.5,
        base_url: str = "https://api.openai.com/v1",
        api_key: Optional[str] = None,
        timeout: float = 60.0,
    ):
        super().__init__(model_name, temperature)
        self.base_url = base_url
        self.api_key = api_key or os.getenv("OPENAI_API_KEY")
        self.timeout = timeout

    def rewrite(self, system_prompt: str, user_prompt: str) -> str:
        payload = {
            "model": self.model_name,
            "temperature": self.temperature,
            "messages": self._build_messages(system_prompt, user_prompt),
        }
        url = f"{self.base_url.rstrip('/')}/chat/completions"
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        try:
            response = requests.post(url, headers=headers, timeout=self.timeout, data=json.dumps(payload))
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            raise GenerationUnavailableError(f"Completion request to {url} failed: {e}") from e

        try:
            return data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as e:
            raise GenerationUnavailableError(f"Unexpected completion response shape from {url}") from e


class MockRewriter(IRewriter):
    """
    Offline rewriter for tests and local development.
    Echoes the quoted text from the user prompt as numbered options.
    """

    TEMPLATES = [
        "{text}",
        "{text} now",
        "Go to {text}",
        "Open {text}",
        "View {text}",
    ]

    def __init__(self, model_name: str = "mock-model", temperature: float = 0.0, count: int = 5):
        super().__init__(model_name, temperature)
        self.count = count

    def rewrite(self, system_prompt: str, user_prompt: str) -> str:
        match = re.search(r'- Text: "(.*)"', user_prompt)
        text = match.group(1) if match else user_prompt.strip()
        lines = []
        for i in range(self.count):
            template = self.TEMPLATES[i % len(self.TEMPLATES)]
            lines.append(f"{i + 1}. {template.format(text=text)}")
        return "\n".join(lines)
