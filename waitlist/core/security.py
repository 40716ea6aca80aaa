import secrets

MIN_TOKEN_BYTES = 16
DEFAULT_TOKEN_BYTES = 32


def generate_token(num_bytes: int = DEFAULT_TOKEN_BYTES) -> str:
    """Return a lowercase hex token drawn from the OS CSPRNG.

    Anything shorter than MIN_TOKEN_BYTES is raised to the floor so a
    misconfigured length never yields a guessable token.
    """
    return secrets.token_hex(max(int(num_bytes), MIN_TOKEN_BYTES))
