import time
from abc import ABC, abstractmethod
from typing import Any

import httpx

from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class ClientInterface(ABC):
    """Base for HTTP backend clients.

    Configuration keys are namespaced as <TYPE>_<ENGINE>_<KEY>
    (e.g. EMBED_OLLAMA_BASE_URL); the request timeout is <TYPE>_TIMEOUT.
    """

    def __init__(self, helper_config: HelperConfig):
        self.logging = helper_config.get_logger()
        self._helper_config = helper_config
        self.timeout = float(helper_config.get_number_val(f"{self.get_client_type().upper()}_TIMEOUT", default=30.0))

        self._client: httpx.AsyncClient | None = None
        self.validate_full_configuration()

    ##########################################
    ############### CHECKER ##################
    ##########################################

    def validate_full_configuration(self) -> None:
        """Read every required key once so misconfiguration fails at construction.

        Raises:
            ValueError: If a required key is missing or has the wrong type.
        """
        for config in self._get_required_config():
            self.get_config_val(raw_key=config.env_key, default=config.default, val_type=config.val_type)

    def is_booted(self) -> bool:
        return self._client is not None

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def get_client_type(self) -> str:
        """Lowercase client type, used as config prefix. E.g. "embed"."""
        return self._get_client_type().lower()

    @abstractmethod
    def _get_client_type(self) -> str:
        pass

    def get_engine_name(self) -> str:
        """Lowercase engine name. E.g. "ollama"."""
        return self._get_engine_name().lower()

    @abstractmethod
    def _get_engine_name(self) -> str:
        pass

    ################ CONFIG ##################
    @abstractmethod
    def _get_required_config(self) -> list[EnvConfig]:
        """Keys (without prefix) the engine reads, with their types and defaults."""
        pass

    def _get_config_key_name(self, raw_key: str) -> str:
        return f"{self.get_client_type().upper()}_{self.get_engine_name().upper()}_{raw_key.upper()}"

    def get_config_val(self, raw_key: str, default: Any = None, val_type: str = "string") -> Any:
        """Read an engine-scoped config value.

        Args:
            raw_key (str): Key without prefix, e.g. "BASE_URL".
            default (Any): Value used when the key is unset.
            val_type (str): "string", "number" or "bool".
        """
        key = self._get_config_key_name(raw_key)
        if val_type == "string":
            return self._helper_config.get_string_val(key, default=default)
        elif val_type == "number":
            return self._helper_config.get_number_val(key, default=default)
        elif val_type == "bool":
            return self._helper_config.get_bool_val(key, default=default)
        else:
            raise ValueError(f"Unsupported config value type '{val_type}' for '{key}'.")

    ################ AUTH ##################
    @abstractmethod
    def _get_auth_header(self) -> dict:
        """Auth headers for every request; empty when no credentials are configured."""
        pass

    ################ ENDPOINTS ##################
    def get_base_url(self) -> str:
        return self._get_base_url()

    @abstractmethod
    def _get_base_url(self) -> str:
        """Backend root URL, e.g. "http://localhost:11434"."""
        pass

    def _build_url(self, endpoint: str) -> str:
        endpoint = endpoint.strip()
        if endpoint:
            endpoint = "/" + endpoint.lstrip("/")
        return self._get_base_url().rstrip("/") + endpoint

    ##########################################
    ############ CORE REQUESTS ###############
    ##########################################

    async def boot(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        """Create the HTTP client.

        Args:
            transport (httpx.AsyncBaseTransport | None): Replaces the network, e.g. an
                httpx.MockTransport in tests.
        """
        self._client = httpx.AsyncClient(timeout=self.timeout, transport=transport)
        self.logging.info("%s client booted for %s", self._get_engine_name(), self._get_base_url())

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "ClientInterface":
        await self.boot()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def do_request(
        self,
        method: str = "GET",
        json: dict | None = None,
        params: dict | None = None,
        endpoint: str = "",
        additional_headers: dict | None = None,
    ) -> httpx.Response:
        """Send one request to the backend. Status codes are left to the caller.

        Raises:
            RuntimeError: If boot() has not been called.
            httpx.TransportError: On connection failures and timeouts.
        """
        if self._client is None:
            raise RuntimeError("HTTP client not initialised. Call boot() before making requests.")

        headers = {**self._get_auth_header(), **(additional_headers or {})}
        url = self._build_url(endpoint)

        started = time.monotonic()
        response = await self._client.request(method, url, headers=headers, params=params, json=json)
        self.logging.debug(
            "%s %s -> %d (%.0f ms)", method, url, response.status_code, (time.monotonic() - started) * 1000
        )
        return response
