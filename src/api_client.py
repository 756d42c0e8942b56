"""HTTP client for the remote text-to-image generation service."""

import json
import logging

import requests
from pydantic import ValidationError as PydanticValidationError

from config import settings
from errors import (
    ApiError,
    AuthError,
    MalformedResponseError,
    RateLimitError,
    ServerError,
    TransportError,
)
from models import GenerateResponse, GenerationRequest

logger = logging.getLogger(__name__)


def error_messages(response: requests.Response) -> list[str]:
    """
    Extract human-readable fragments from a non-2xx response body.

    The `error`, `message` and `details` fields are each surfaced when
    present. A body that is not a JSON object is reported verbatim with
    the status code.

    Args:
        response: The failed response

    Returns:
        List of message fragments (never empty)
    """
    try:
        body = response.json()
    except ValueError:
        body = None

    if not isinstance(body, dict):
        return [f"API Error (Status {response.status_code}): {response.text}"]

    messages = []
    if body.get("error"):
        messages.append(f"API Error: {body['error']}")
    if body.get("message"):
        messages.append(f"API Message: {body['message']}")
    if body.get("details") is not None:
        details = body["details"]
        if not isinstance(details, str):
            details = json.dumps(details)
        messages.append(f"API Details: {details}")
    if not messages:
        messages.append(f"API Error (Status {response.status_code}): {response.text}")
    return messages


def raise_for_response(response: requests.Response) -> None:
    """Raise the ApiError subclass matching a non-2xx status.

    Raises:
        AuthError: 401
        RateLimitError: 429
        ServerError: 5xx
        ApiError: any other non-2xx status
    """
    status = response.status_code
    if 200 <= status < 300:
        return

    messages = error_messages(response)
    if status == 401:
        raise AuthError(status, messages)
    if status == 429:
        raise RateLimitError(status, messages)
    if status >= 500:
        raise ServerError(status, messages)
    raise ApiError(status, messages)


class VeniceClient:
    """Authenticated client for the image generation endpoint."""

    def __init__(
        self,
        api_key: str,
        url: str | None = None,
        session: requests.Session | None = None,
    ):
        """Initialize the client.

        Args:
            api_key: Bearer credential for the service
            url: Endpoint URL (defaults to the configured API URL)
            session: Optional requests session (created if not provided)
        """
        self.url = url or settings.api.url
        self.session = session or requests.Session()
        self.set_api_key(api_key)

    def set_api_key(self, api_key: str) -> None:
        """Use a new bearer credential for subsequent requests."""
        self.session.headers.update({"Authorization": f"Bearer {api_key}"})

    def check_status(self, timeout: float | None = None) -> None:
        """
        Check the endpoint is reachable before a run.

        Args:
            timeout: Seconds to wait (defaults to the configured health timeout)

        Raises:
            TransportError: If the service cannot be reached
            AuthError: If the credential is rejected
            ServerError: If the service answers with a 5xx status
        """
        timeout = timeout or settings.api.health_timeout
        try:
            response = self.session.get(self.url, timeout=timeout)
        except requests.RequestException as e:
            raise TransportError(f"API appears to be down: {e}") from e

        if response.status_code == 401:
            raise AuthError(401, error_messages(response))
        if response.status_code >= 500:
            raise ServerError(
                response.status_code,
                [f"API health check failed (Status {response.status_code}): {response.text}"],
            )

    def generate(self, request: GenerationRequest, timeout: float | None = None) -> list[str]:
        """
        Submit a generation request.

        Args:
            request: The request to send
            timeout: Seconds to wait (defaults to the configured generation timeout)

        Returns:
            Base64-encoded image payloads in response order

        Raises:
            TransportError: On connection failure or timeout
            ApiError: (or a subclass) on a non-2xx response
            MalformedResponseError: If a 2xx body has no usable images
        """
        timeout = timeout or settings.api.generate_timeout
        logger.debug("Starting API request...")
        try:
            response = self.session.post(self.url, json=request.to_payload(), timeout=timeout)
        except requests.RequestException as e:
            raise TransportError(f"HTTP request failed: {e}") from e

        logger.debug(f"Got response {response.status_code}, {len(response.content)} bytes")
        raise_for_response(response)

        try:
            parsed = GenerateResponse.model_validate_json(response.content)
        except PydanticValidationError as e:
            raise MalformedResponseError(f"Error parsing API response: {e}") from e

        if not parsed.images:
            raise MalformedResponseError("API response contained no images")
        return parsed.images

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self.session.close()
