from __future__ import annotations


class MigrationError(RuntimeError):
    code = "MIGRATION_ERROR"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        if code:
            self.code = code


class FormatError(MigrationError):
    """Legacy frontmatter is missing, unterminated or lacks a required field."""

    code = "FORMAT"


class PathSafetyViolation(MigrationError):
    code = "UNSAFE_PATH"


class SizeLimitExceeded(MigrationError):
    code = "SIZE_LIMIT"


class IOFailure(MigrationError):
    code = "IO"


class TransformFailure(MigrationError):
    code = "TRANSFORM"
