"""Error types raised by docweave."""

from __future__ import annotations

from typing import Any, Optional


class DocweaveError(Exception):
    """Error carrying a location and a machine-readable type.

    Subclasses set ``default_type``; callers may override it per raise.
    """

    default_type = "error"

    def __init__(
        self,
        message: str,
        file: Optional[str] = None,
        line: Optional[int] = None,
        error_type: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.file = file
        self.line = line
        self.error_type = error_type or self.default_type

    def to_json(self) -> dict[str, Any]:
        """Serialize error to JSON format for machine parsing."""
        result: dict[str, Any] = {
            "error": self.error_type,
            "message": self.message,
        }
        if self.file:
            result["file"] = self.file
        if self.line:
            result["line"] = self.line
        return result

    def __str__(self) -> str:
        parts = [self.message]
        if self.file:
            parts.append(f"file: {self.file}")
        if self.line:
            parts.append(f"line: {self.line}")
        return " | ".join(parts)


class ConfigError(DocweaveError):
    """Invalid configuration; fatal before any document is read."""

    default_type = "config_invalid"


class StructuralError(DocweaveError):
    """Malformed document structure or unresolvable sample reference."""

    default_type = "structure_invalid"
