# src/nicorag_gateway/adapters/azure_openai.py
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from nicorag_gateway.app.core.config import Settings
from nicorag_gateway.app.core.errors import UpstreamError, UpstreamNotConfigured

_log = logging.getLogger("nicorag.aoai")


def completion_url(endpoint: str, deployment: str) -> str:
    """Deployment-scoped chat completions URL (api-version goes in the query)."""
    return f"{endpoint.rstrip('/')}/openai/deployments/{quote(deployment, safe='')}/chat/completions"


class AzureOpenAIClient:
    """
    Azure OpenAI chat-completions adapter (non-streaming).

    settings slice used:
      aoai_endpoint     e.g. https://aoai-xxx.openai.azure.com
      aoai_key          sent as the `api-key` header
      aoai_deployment   e.g. gpt-chat
      aoai_api_version  e.g. 2024-06-01
    """

    def __init__(self, settings: Settings):
        self.endpoint = settings.aoai_endpoint
        self._api_key = settings.aoai_key
        self.deployment = settings.aoai_deployment
        self.api_version = settings.aoai_api_version
        self.default_temperature = settings.aoai_temperature
        self.default_max_tokens = settings.aoai_max_tokens
        self.timeout = settings.upstream_timeout_sec

    @property
    def configured(self) -> bool:
        return bool(self.endpoint and self._api_key)

    @property
    def url(self) -> str:
        return completion_url(self.endpoint, self.deployment)

    def build_payload(self, messages: List[Dict[str, str]], **options: Any) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "messages": messages,
            "temperature": self.default_temperature,
            "max_tokens": self.default_max_tokens,
        }
        # caller options win over defaults; None means "not supplied"
        payload.update({k: v for k, v in options.items() if v is not None})
        return payload

    async def complete(
        self,
        messages: List[Dict[str, str]],
        client: Optional[httpx.AsyncClient] = None,
        **options: Any,
    ) -> Dict[str, Any]:
        """POST the conversation and return the provider JSON unmodified."""
        if not self.configured:
            raise UpstreamNotConfigured("Azure OpenAI is not configured. Check AOAI_ENDPOINT and AOAI_KEY.")

        payload = self.build_payload(messages, **options)
        headers = {
            "api-key": self._api_key,
            "Content-Type": "application/json",
        }
        _log.debug("AOAI request: url=%s body=%s", self.url, payload)

        own = client or httpx.AsyncClient(timeout=self.timeout)
        try:
            r = await own.post(self.url, params={"api-version": self.api_version}, json=payload, headers=headers)
        except httpx.TimeoutException:
            raise UpstreamError(504, "Azure OpenAI request timed out")
        except httpx.HTTPError as ex:
            raise UpstreamError(502, f"Azure OpenAI request failed: {ex}")
        finally:
            if client is None:
                await own.aclose()

        if r.status_code >= 300:
            _log.warning("AOAI error %s: %s", r.status_code, r.text[:400])
            raise UpstreamError(r.status_code, r.text)

        try:
            return r.json()
        except ValueError:
            raise UpstreamError(502, f"Azure OpenAI returned a non-JSON body: {r.text[:400]}")
