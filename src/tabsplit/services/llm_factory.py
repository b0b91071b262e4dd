import os
from enum import Enum
from typing import Dict, Union
from loguru import logger
from anthropic import AsyncAnthropic
from openai import AsyncAzureOpenAI
from pydantic_ai.models.anthropic import AnthropicModel
from pydantic_ai.models.openai import OpenAIModel
from pydantic_ai.providers.anthropic import AnthropicProvider
from pydantic_ai.providers.openai import OpenAIProvider

from ..core.config import LLM_CONFIG


class LLMProviderType(Enum):
    ANTHROPIC = "anthropic"
    AZURE_OPENAI = "azure_openai"


LLMModel = Union[AnthropicModel, OpenAIModel]

_client_cache: Dict[str, Union[AsyncAnthropic, AsyncAzureOpenAI]] = {}  # cache for SDK clients
_model_cache: Dict[str, LLMModel] = {}  # cache for LLM models


def _get_anthropic_client(api_key: str) -> AsyncAnthropic:
    """Creates or retrieves a cached AsyncAnthropic client."""
    client_key = "anthropic"
    if client_key not in _client_cache:
        logger.info("Creating new AsyncAnthropic client")
        if not api_key:
            raise ValueError("API key is missing, it must be provided.")
        _client_cache[client_key] = AsyncAnthropic(api_key=api_key)
    return _client_cache[client_key]


def _get_azure_client(endpoint: str, api_key: str, api_version: str) -> AsyncAzureOpenAI:
    """Creates or retrieves a cached AsyncAzureOpenAI client."""
    client_key = f"{endpoint}:{api_version}"
    if client_key not in _client_cache:
        logger.info(f"Creating new AsyncAzureOpenAI client for endpoint: {endpoint}")
        if not endpoint or not api_key:
            raise ValueError("Endpoint or API key are missing, both must be provided.")
        _client_cache[client_key] = AsyncAzureOpenAI(
            azure_endpoint=endpoint,
            api_key=api_key,
            api_version=api_version,
        )
    return _client_cache[client_key]


def get_model(model_name: str) -> LLMModel:
    """Retrieves a model by its logical name.

    Args:
        model_name (str): Logical model name. Must match a key in LLM_CONFIG, whose
            "provider" entry selects the LLMProviderType."""

    if model_name not in LLM_CONFIG:
        raise ValueError(f"Model {model_name} not found in LLM_CONFIG.")
    config = LLM_CONFIG[model_name]
    provider_type = LLMProviderType(config["provider"])

    cache_key = f"{provider_type.value}:{model_name}"
    if cache_key in _model_cache:
        logger.debug(f"Using cached model for {cache_key}")
        return _model_cache[cache_key]

    logger.info(f"Creating new model instance for key: {cache_key}")
    api_key = os.getenv(config["key_env"])
    deployment_name = config["deployment_name"]

    if provider_type == LLMProviderType.ANTHROPIC:
        client = _get_anthropic_client(api_key=api_key)
        model_instance = AnthropicModel(
            deployment_name, provider=AnthropicProvider(anthropic_client=client)
        )
    elif provider_type == LLMProviderType.AZURE_OPENAI:
        endpoint = os.getenv(config["endpoint_env"])
        api_version = os.getenv(config["version_env"], config["default_version"])
        client = _get_azure_client(endpoint=endpoint, api_key=api_key, api_version=api_version)
        model_instance = OpenAIModel(
            deployment_name, provider=OpenAIProvider(openai_client=client)
        )
    else:
        raise ValueError(f"Unsupported provider type: {provider_type}.")

    _model_cache[cache_key] = model_instance
    logger.info(f"Successfully created and cached model instance for {cache_key}")
    return model_instance
