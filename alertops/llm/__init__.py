# LLM Package
"""Model backend clients."""

from alertops.llm.ollama_client import OllamaClient, normalize_model_name

__all__ = ["OllamaClient", "normalize_model_name"]
