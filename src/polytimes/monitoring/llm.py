"""Model selection for the monitor's editor agent."""

from pydantic_ai.models import Model
from pydantic_ai.models.anthropic import AnthropicModel
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.anthropic import AnthropicProvider
from pydantic_ai.providers.openai import OpenAIProvider

from polytimes.config import Settings, get_settings
from polytimes.core.logging import get_logger

logger = get_logger(__name__)


def model_name_for(settings: Settings, smart: bool) -> str:
    return settings.llm_model_smart if smart else settings.llm_model


def create_model(smart: bool = False, settings: Settings | None = None) -> str | Model:
    """Build the PydanticAI model named by ``llm_provider``.

    Anthropic without an explicit key returns a ``"anthropic:<name>"`` string,
    leaving PydanticAI to read ``ANTHROPIC_API_KEY`` from the environment.
    ``openai_base_url`` points the OpenAI provider at any compatible API.
    """
    settings = settings or get_settings()
    name = model_name_for(settings, smart)
    log = logger.bind(provider=settings.llm_provider, model=name, smart=smart)

    if settings.llm_provider == "anthropic":
        if settings.anthropic_api_key is None:
            log.debug("Editor model selected from environment")
            return f"anthropic:{name}"
        log.debug("Editor model selected")
        return AnthropicModel(
            name,
            provider=AnthropicProvider(api_key=settings.anthropic_api_key.get_secret_value()),
        )

    api_key = settings.openai_api_key.get_secret_value() if settings.openai_api_key else None
    provider = (
        OpenAIProvider(base_url=settings.openai_base_url, api_key=api_key)
        if settings.openai_base_url
        else OpenAIProvider(api_key=api_key)
    )
    log.debug("Editor model selected", base_url=settings.openai_base_url)
    return OpenAIChatModel(name, provider=provider)
