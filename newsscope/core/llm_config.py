"""
LLM Configuration - Groq (OpenAI-compatible) with per-model cooldown
"""
from typing import Dict, Optional
from dataclasses import dataclass

from .config import Settings


@dataclass
class LLMConfig:
    provider: str
    model: str
    api_key: str
    base_url: Optional[str] = None
    max_tokens: int = 2048
    temperature: float = 0.4
    context_window: Optional[int] = None


class LLMManager:
    # Track temporarily exhausted models with a cooldown deadline
    _exhausted_models: Dict[str, float] = {}
    COOLDOWN_SECONDS = 300

    # Available models and metadata
    PROVIDERS = {
        "groq": {
            "name": "Groq",
            "base_url": "https://api.groq.com/openai/v1",
            "models": {
                "llama-3.3-70b-versatile": {
                    "name": "Llama 3.3 70B",
                    "context_window": 131072,
                },
                "llama-3.1-8b-instant": {
                    "name": "Llama 3.1 8B (Ultra Fast)",
                    "context_window": 131072,
                },
                "openai/gpt-oss-120b": {
                    "name": "GPT-OSS 120B",
                    "context_window": 131072,
                },
            }
        }
    }

    @classmethod
    def get_config(cls, settings: Settings) -> LLMConfig:
        if not settings.GROQ_API_KEY:
            raise ValueError("Missing GROQ_API_KEY")

        model = settings.LLM_MODEL
        models = cls.PROVIDERS["groq"]["models"]
        if model not in models:
            raise ValueError(f"Unsupported model: {model}")

        return LLMConfig(
            provider="groq",
            model=model,
            api_key=settings.GROQ_API_KEY,
            base_url=cls.PROVIDERS["groq"]["base_url"],
            max_tokens=settings.LLM_MAX_TOKENS,
            temperature=settings.LLM_TEMPERATURE,
            context_window=models[model]["context_window"],
        )

    @classmethod
    def ranked_models(cls, preferred: str) -> list:
        """Preferred model first, then the remaining known models."""
        models = list(cls.PROVIDERS["groq"]["models"])
        if preferred in models:
            models.remove(preferred)
            models.insert(0, preferred)
        return models

    @classmethod
    def is_cooling_down(cls, model: str, now: float) -> bool:
        deadline = cls._exhausted_models.get(model)
        if deadline is None:
            return False
        if now < deadline:
            return True
        del cls._exhausted_models[model]
        return False

    @classmethod
    def mark_exhausted(cls, model: str, now: float) -> None:
        cls._exhausted_models[model] = now + cls.COOLDOWN_SECONDS

