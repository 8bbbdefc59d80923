import httpx

from shared.core import get_logger
from commerce_ops.application.errors import ProviderError

logger = get_logger(__name__)


def provider_call(provider: str, client: httpx.Client, method: str, url: str, **kwargs) -> dict:
    """Issue a request to an external provider and return its JSON body.

    Transport failures and non-2xx responses become ``ProviderError`` with the
    provider's own message.
    """
    try:
        response = client.request(method, url, **kwargs)
    except httpx.TimeoutException as e:
        logger.warning(f"{provider} request timed out: {method} {url}")
        raise ProviderError(provider, f"{provider} request timed out: {e}", retryable=True) from e
    except httpx.HTTPError as e:
        logger.warning(f"{provider} request failed: {method} {url}: {e}")
        raise ProviderError(provider, str(e) or f"{provider} request failed", retryable=True) from e

    if response.status_code >= 400:
        message = _error_message(response)
        logger.warning(
            f"{provider} rejected request: {method} {url}",
            extra={"extra_fields": {"provider": provider, "status_code": response.status_code, "error": message}},
        )
        raise ProviderError(
            provider,
            message,
            status_code=response.status_code,
            retryable=response.status_code == 429 or response.status_code >= 500,
        )

    if not response.content:
        return {}
    return response.json()


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return error["message"]
        if isinstance(error, str):
            return error
        for key in ("message", "detail"):
            if body.get(key):
                return str(body[key])
    return response.text or f"HTTP {response.status_code}"
