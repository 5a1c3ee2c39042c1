"""
Interprets the token endpoint's reply.
"""

import json
import logging

from pydantic import ValidationError

from tmoid.core.config import DEFAULT_IDENTITY_FIELD
from tmoid.core.domain import TokenGrant
from tmoid.core.exceptions import MalformedResponse, ProviderRejection


logger = logging.getLogger(__name__)


def interpret_token_response(
    body: str, identity_field: str = DEFAULT_IDENTITY_FIELD
) -> TokenGrant:
    """
    Parse a token endpoint body into a TokenGrant.

    A document with an "error" key is a provider rejection, regardless of
    any other keys. A document without error and without access_token is
    returned as a grant with no token.

    Args:
        body: Raw response body
        identity_field: Key holding the identity id (tmobileid for T-Mobile ID)

    Returns:
        TokenGrant with the extracted fields

    Raises:
        ProviderRejection: If the provider reported an error
        MalformedResponse: If the body is not a JSON object or fields have the wrong type
    """
    try:
        data = json.loads(body)
    except (ValueError, TypeError, RecursionError) as e:
        # RecursionError: nesting deeper than the json decoder can follow
        logger.error(f"Token endpoint returned an unparseable body: {e}")
        raise MalformedResponse(f"Token endpoint returned invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise MalformedResponse(
            f"Token endpoint returned {type(data).__name__}, expected an object"
        )

    if data.get("error"):
        error = str(data["error"])
        description = data.get("error_description")
        logger.info(
            f"Token endpoint rejected the exchange: {error}",
            extra={"error": error, "error_description": description},
        )
        raise ProviderRejection(
            error, str(description) if description is not None else None
        )

    try:
        grant = TokenGrant(
            access_token=data.get("access_token"),
            token_type=data.get("token_type"),
            expires_in=data.get("expires_in"),
            identity_id=data.get(identity_field),
            scope=data.get("scope"),
        )
    except ValidationError as e:
        raise MalformedResponse(f"Invalid token response: {e}") from e

    if not grant.has_token:
        logger.warning("Token endpoint response carried no access token")

    return grant
