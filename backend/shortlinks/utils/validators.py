import re
from urllib.parse import urlparse

# Custom labels end up as a single path segment
LABEL_PATTERN = re.compile(r"[A-Za-z0-9_-]{1,64}")

# Paths served by the application itself
RESERVED_LABELS = frozenset({"api", "docs", "redoc", "health"})

# Stands in for the address when the client is not known
UNKNOWN_CLIENT_IP = "unknown"


def is_valid_url(url: str) -> tuple[bool, str]:
    """
    Validate that a URL is an absolute HTTP or HTTPS URL.

    Args:
        url: The URL to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not url or not url.strip():
        return False, "URL cannot be empty"

    if url != url.strip() or any(c.isspace() for c in url):
        return False, "URL cannot contain whitespace"

    try:
        result = urlparse(url)

        # Only http and https
        if result.scheme not in ("http", "https"):
            return False, "Only HTTP and HTTPS URLs are allowed"

        # Must have a host
        if not result.netloc or not result.hostname:
            return False, "Invalid URL format"

        # Raises ValueError on a malformed port
        result.port

        return True, ""

    except ValueError as e:
        return False, f"Invalid URL: {str(e)}"


def is_valid_label(label: str) -> tuple[bool, str]:
    """
    Validate a custom label for use as a short identifier.

    Args:
        label: The custom label to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not label:
        return False, "Label cannot be empty"

    if not LABEL_PATTERN.fullmatch(label):
        return False, "Label can only contain letters, digits, hyphens and underscores (max 64)"

    if label in RESERVED_LABELS:
        return False, f"'{label}' is a reserved word and cannot be used"

    return True, ""


def get_client_ip(request) -> str:
    """
    Get client IP address from request.

    Args:
        request: FastAPI request object

    Returns:
        Client IP address
    """
    # Check for X-Forwarded-For header (if behind proxy)
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # Take the first IP in the chain
        return forwarded.split(",")[0].strip()

    # Otherwise use client.host
    return request.client.host if request.client else UNKNOWN_CLIENT_IP
