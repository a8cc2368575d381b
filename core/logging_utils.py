"""
Credential-safe logging helpers.

FTP credentials and hosts arrive in request bodies; these helpers keep them
recognizable in logs without writing them out in full.
"""


def sanitize_username(user: str | None) -> str:
    """
    Mask an FTP login name.

    Rules:
    - None / empty / <4 chars → fully masked
    - Otherwise → first 2 + last 1 chars, middle masked
    """
    if not user:
        return "***"

    user = user.strip()
    if len(user) < 4:
        return "***"

    return f"{user[:2]}***{user[-1:]}"


def sanitize_order_id(order_id: int | str | None) -> str:
    """
    Normalize order ID for logs.
    """
    return str(order_id) if order_id not in (None, "") else "N/A"


def describe_paths(paths: list[str], limit: int = 3) -> str:
    """Short form of a batch list: first few paths plus a count."""
    if len(paths) <= limit:
        return ", ".join(paths)
    return ", ".join(paths[:limit]) + f" (+{len(paths) - limit} more)"
