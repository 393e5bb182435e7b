import logging

from pydantic import ValidationError

from gitlab_remote.models.hook import HookPayload
from gitlab_remote.services.gitlab.errors import ParseError

logger = logging.getLogger(__name__)


def parse_hook(raw: bytes) -> HookPayload:
    """
    Deserialize a GitLab webhook body.

    Every sub-structure is optional, so any JSON object parses, including
    "{}". Whether an event carries what it needs is decided during
    normalization.

    Raises:
        ParseError: If the body is not JSON, not an object, or has fields
                    of the wrong type.
    """
    try:
        return HookPayload.model_validate_json(raw)
    except ValidationError as e:
        logger.warning(f"Rejected webhook payload: {e.error_count()} validation error(s)")
        raise ParseError(f"Invalid webhook payload: {e}") from e
