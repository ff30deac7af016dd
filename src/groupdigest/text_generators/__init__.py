# text_generators/__init__.py
from .base import TextGeneratorAPI
from .anthropic import AnthropicTextGenerator
from .groq import GroqTextGenerator

__all__ = [
    "TextGeneratorAPI",
    "AnthropicTextGenerator",
    "GroqTextGenerator",
    "get_text_generator",
]


def get_text_generator(api: str, model: str) -> TextGeneratorAPI:
    """Return an appropriate text-generator instance for the given API."""
    if api == "groq":
        return GroqTextGenerator(model)
    if api == "anthropic":
        return AnthropicTextGenerator(model)
    raise ValueError(f"Unknown API: {api}")
