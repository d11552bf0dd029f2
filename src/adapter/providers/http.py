"""HTTP status handling shared by provider clients"""

import httpx
from src.app.services.providers import ProviderRequestError, ProviderTransientError

TRANSIENT_STATUS_CODES = {408, 425, 429}


def raise_for_provider_status(response: httpx.Response, provider: str) -> None:
    """
    Translate an HTTP error status into a provider exception

    Raises:
        ProviderTransientError: 5xx, 408, 425, 429
        ProviderRequestError: any other 4xx
    """
    if response.is_success:
        return

    status = response.status_code
    detail = response.text[:200] if response.content else response.reason_phrase
    message = f"{provider} responded {status}: {detail}"

    if status >= 500 or status in TRANSIENT_STATUS_CODES:
        raise ProviderTransientError(message)
    raise ProviderRequestError(message)


def json_body(response: httpx.Response, provider: str) -> dict:
    try:
        data = response.json()
    except ValueError:
        raise ProviderRequestError(f"{provider} returned a non-JSON body")
    if not isinstance(data, dict):
        raise ProviderRequestError(f"{provider} returned an unexpected body")
    return data
