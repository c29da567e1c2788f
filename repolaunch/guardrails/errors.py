import logging

from fastapi import HTTPException

from repolaunch.core.github_client import GitHubAPIError

logger = logging.getLogger(__name__)

NAME_CONFLICT_MESSAGE = "Repository name already exists or validation failed. Try a different name."
INVALID_TOKEN_MESSAGE = 'Invalid GitHub token. Please check your token has "repo" permissions.'


def as_http_500(e: Exception) -> HTTPException:
    """Log exception and return a generic 500 HTTPException (no internal details leaked).
    Why available: Centralized error handling so API never leaks stack traces or internal state to clients."""
    logger.error("Unhandled error", exc_info=e)
    return HTTPException(status_code=500, detail="Internal server error")


def friendly_error(e: BaseException) -> str:
    """Turn a setup failure into the message recorded on the failed step.
    Known GitHub statuses get a hint, otherwise the API's own message, otherwise the raw error text."""
    if isinstance(e, GitHubAPIError):
        if e.status_code == 422:
            return NAME_CONFLICT_MESSAGE
        if e.status_code == 401:
            return INVALID_TOKEN_MESSAGE
        if e.api_message:
            return e.api_message
    return str(e) or type(e).__name__
