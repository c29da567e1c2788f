TOKEN_PREFIXES = ("ghp_", "github_pat_")
MIN_TOKEN_LENGTH = 20


class TokenFormatError(ValueError):
    """Token does not look like a GitHub personal access token."""


def check_token_format(token: str) -> None:
    """Reject tokens that are not classic (ghp_) or fine-grained (github_pat_) PATs, or are too short to be real.
    Only the shape is checked here; GitHub itself decides whether the token is valid."""
    if not token.startswith(TOKEN_PREFIXES):
        raise TokenFormatError(
            'Invalid GitHub token format. Token should start with "ghp_" or "github_pat_"'
        )
    if len(token) < MIN_TOKEN_LENGTH:
        raise TokenFormatError("GitHub token appears too short. Please check your token.")
