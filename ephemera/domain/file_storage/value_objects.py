"""
File Storage Value Objects

Immutable value objects for type safety and validation.
"""

from dataclasses import dataclass
import secrets


class InvalidDownloadTokenError(ValueError):
    """Raised when a download token is invalid."""
    pass


@dataclass(frozen=True)
class DownloadToken:
    """
    Value object representing a validated download token.

    Ensures tokens are cryptographically secure and meet minimum length requirements.
    Tokens must be at least 32 characters long and URL-safe.
    """
    value: str

    def __post_init__(self):
        if not self._is_valid():
            length = len(self.value) if isinstance(self.value, str) else 0
            raise InvalidDownloadTokenError(
                f"Invalid download token: must be at least 32 URL-safe characters, got {length}"
            )

    def _is_valid(self) -> bool:
        """
        Validate download token.

        Requirements:
        - Must be a string
        - Must be at least 32 characters long
        - Should be URL-safe (alphanumeric, hyphens, underscores)
        """
        if not self.value or not isinstance(self.value, str):
            return False

        if len(self.value) < 32:
            return False

        return all(c.isalnum() or c in '-_' for c in self.value)

    @classmethod
    def generate(cls) -> 'DownloadToken':
        """
        Generate a new cryptographically secure download token.

        Uses secrets.token_urlsafe(32): 256 bits of randomness,
        43 characters once base64 encoded.

        Returns:
            New DownloadToken instance with generated value
        """
        return cls(secrets.token_urlsafe(32))

    @classmethod
    def is_well_formed(cls, value: str) -> bool:
        """Check a raw string without raising."""
        try:
            cls(value)
            return True
        except InvalidDownloadTokenError:
            return False

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class StorageKey:
    """
    Blob key for a file's content.

    Derived from the file id and its original name, so two uploads with
    the same filename never collide.
    """
    value: str

    PREFIX = "uploads"
    FALLBACK_NAME = "file"
    # Filesystems cap a path segment at 255 bytes
    MAX_NAME_BYTES = 200
    MAX_EXTENSION_BYTES = 16

    @classmethod
    def derive(cls, file_id: str, original_name: str) -> 'StorageKey':
        """
        Build the storage key for a file.

        Args:
            file_id: Unique file identifier
            original_name: Name supplied by the uploader

        Returns:
            StorageKey of the form ``uploads/<file_id>/<sanitized name>``
        """
        if not file_id:
            raise ValueError("file_id cannot be empty")
        return cls(f"{cls.PREFIX}/{file_id}/{cls.sanitize(original_name)}")

    @classmethod
    def sanitize(cls, filename: str) -> str:
        """
        Sanitize filename for safe storage.

        Keeps alphanumerics and `` .-_()``; path separators are dropped.
        Names longer than MAX_NAME_BYTES of UTF-8 are shortened, keeping
        a short extension.
        """
        safe_chars = "".join(
            c for c in (filename or "") if c.isalnum() or c in " .-_()"
        ).strip()
        safe_chars = cls._truncate(safe_chars)

        # "." and ".." would escape the file's directory
        if not safe_chars.strip("."):
            return cls.FALLBACK_NAME

        return safe_chars

    @classmethod
    def _truncate(cls, name: str) -> str:
        if len(name.encode("utf-8")) <= cls.MAX_NAME_BYTES:
            return name

        stem, dot, extension = name.rpartition(".")
        suffix = dot + extension
        if not stem or len(suffix.encode("utf-8")) > cls.MAX_EXTENSION_BYTES:
            stem, suffix = name, ""

        budget = cls.MAX_NAME_BYTES - len(suffix.encode("utf-8"))
        # A multibyte character cut in half is dropped
        stem = stem.encode("utf-8")[:budget].decode("utf-8", errors="ignore").rstrip()
        return stem + suffix

    def __str__(self) -> str:
        return self.value
