"""
Catalogue of AI providers and models the service can route requests to.
"""
from dataclasses import dataclass
from typing import Dict, List, Optional


@dataclass(frozen=True)
class AIProvider:
    id: str
    name: str
    env_key: str
    base_url: Optional[str] = None


@dataclass(frozen=True)
class AIModel:
    id: str
    name: str
    provider: str
    is_free: bool = False
    requires_pro: bool = False
    hidden: bool = False


OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
ANTHROPIC_BASE_URL = "https://api.anthropic.com/v1/"

PROVIDERS: Dict[str, AIProvider] = {
    "openai": AIProvider("openai", "OpenAI", "OPENAI_API_KEY"),
    "anthropic": AIProvider("anthropic", "Anthropic", "ANTHROPIC_API_KEY", ANTHROPIC_BASE_URL),
    "openrouter": AIProvider("openrouter", "OpenRouter", "OPENROUTER_API_KEY", OPENROUTER_BASE_URL),
}

MODELS: List[AIModel] = [
    AIModel("gpt-5-mini", "GPT-5 Mini", "openai", is_free=True),
    AIModel("gpt-5", "GPT-5", "openai", requires_pro=True),
    AIModel("gpt-4.1-nano", "GPT-4.1 Nano", "openai", is_free=True),
    AIModel("gpt-4.1", "GPT-4.1", "openai", requires_pro=True),
    AIModel("claude-sonnet-4-20250514", "Claude Sonnet 4", "anthropic", requires_pro=True),
    AIModel("claude-3-5-haiku-20241022", "Claude 3.5 Haiku", "anthropic"),
    AIModel("openai/gpt-oss-120b:free", "GPT OSS 120B", "openrouter", is_free=True),
    AIModel("openai/gpt-oss-20b:free", "GPT OSS 20B", "openrouter", is_free=True),
    AIModel("qwen/qwen3-coder:free", "Qwen3 Coder", "openrouter", is_free=True),
    AIModel("deepseek/deepseek-v3.2:nitro", "DeepSeek V3.2", "openrouter"),
    # fallback-only entries, not offered in the model picker
    AIModel("nvidia/nemotron-nano-9b-v2:free", "Nemotron Nano 9B", "openrouter", is_free=True, hidden=True),
    AIModel("z-ai/glm-4.5-air:free", "GLM 4.5 Air", "openrouter", is_free=True, hidden=True),
    AIModel("gpt-5-codex", "GPT-5 Codex", "openai", hidden=True),
    AIModel("gpt-5.2-codex", "GPT-5.2 Codex", "openai", hidden=True),
    AIModel("gpt-5.1-codex", "GPT-5.1 Codex", "openai", hidden=True),
]

_MODELS_BY_ID = {m.id: m for m in MODELS}


def get_model_by_id(model_id: Optional[str]) -> Optional[AIModel]:
    if not model_id:
        return None
    return _MODELS_BY_ID.get(model_id)


def get_provider_by_id(provider_id: str) -> Optional[AIProvider]:
    return PROVIDERS.get(provider_id)


def visible_models() -> List[AIModel]:
    return [m for m in MODELS if not m.hidden]
