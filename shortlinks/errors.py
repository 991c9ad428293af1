"""Exception taxonomy for link allocation, resolution and storage."""

from shortlinks.enums import TargetRejection

__all__ = [
    "LinkError",
    "RejectedTargetError",
    "RejectedCodeFormatError",
    "CodeConflictError",
    "CodeSpaceExhaustedError",
    "LinkNotFoundError",
    "StorageUnavailableError",
]


class LinkError(Exception):
    """Base class for all permanent link-engine failures."""


class RejectedTargetError(LinkError):
    """Raised when a target address fails format or safety validation."""

    def __init__(self, target: str, reason: TargetRejection):
        self.target = target
        self.reason = reason
        super().__init__(f"Target rejected ({reason.value}): {target!r}")


class RejectedCodeFormatError(LinkError):
    """Raised when a custom code breaks the length or character rule."""

    def __init__(self, code: str):
        self.code = code
        super().__init__(
            f"Custom code {code!r} must be 3-50 characters of letters, digits, '_' or '-'"
        )


class CodeConflictError(LinkError):
    """Raised when a custom code is already held by a live link."""

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Custom code '{code}' is already taken")


class CodeSpaceExhaustedError(LinkError):
    """Raised when every generated candidate collided within the attempt bound."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Could not allocate a free short code after {attempts} attempts")


class LinkNotFoundError(LinkError):
    """Raised when a code or id does not name a stored link."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Link not found: {key!r}")


class StorageUnavailableError(Exception):
    """Transient backend failure (timeout, lost connection, pool exhaustion).

    Not a LinkError. The operation that raised it may be retried by the caller.
    """
