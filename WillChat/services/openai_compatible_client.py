import os
from typing import Dict, Optional

from openai import AsyncOpenAI

from WillChat.config import APP_REFERER, APP_TITLE, COMPLETION_PROVIDER
from WillChat.services.exceptions import CompletionConfigError


_PROVIDER_CFG: Dict[str, Dict[str, Optional[str]]] = {
    "openrouter": {"env": "OPENROUTER_API_KEY", "base_url": "https://openrouter.ai/api/v1"},
    "openai": {"env": "OPENAI_API_KEY", "base_url": None},
    "grok": {"env": "GROK_API_KEY", "base_url": "https://api.x.ai/v1"},
    "gemini": {"env": "GEMINI_API_KEY", "base_url": "https://generativelanguage.googleapis.com/v1beta/openai"},
    "anthropic": {"env": "ANTHROPIC_API_KEY", "base_url": "https://api.anthropic.com/v1"},
}


# Create an async OpenAI-compatible client for the configured model provider
def get_async_openai_compatible_client(provider: Optional[str] = None) -> AsyncOpenAI:
    provider_l = (provider or COMPLETION_PROVIDER).strip().lower()
    cfg = _PROVIDER_CFG.get(provider_l)
    if cfg is None:
        raise CompletionConfigError(f"Unsupported provider: {provider_l}")

    env_var = cfg["env"]
    api_key = os.getenv(env_var) if env_var else None
    if not api_key:
        raise CompletionConfigError(f"Missing API key for provider '{provider_l}'. Set {env_var}.")

    # No retries: a failed attempt is terminal and the user re-sends or regenerates
    kwargs = {"api_key": api_key, "max_retries": 0}
    if cfg["base_url"]:
        kwargs["base_url"] = cfg["base_url"]
    if provider_l == "openrouter":
        kwargs["default_headers"] = {"HTTP-Referer": APP_REFERER, "X-Title": APP_TITLE}
    return AsyncOpenAI(**kwargs)
