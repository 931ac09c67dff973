"""Declaration source: desired notification state read from files."""

from __future__ import annotations

from .loader import load_declarations, parse_declarations
from .schema import DeclarationDocument, NotificationDeclaration

__all__ = [
    "DeclarationDocument",
    "NotificationDeclaration",
    "load_declarations",
    "parse_declarations",
]
