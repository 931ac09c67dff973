"""Load declared notifications from TOML files."""

from __future__ import annotations

import tomllib
from logging import getLogger
from typing import TYPE_CHECKING

import pydantic

from budgetsync.config.errors import DeclarationError

from .schema import DeclarationDocument

if TYPE_CHECKING:
    from pathlib import Path

    from budgetsync.domain.model import DeclaredNotification

log = getLogger(__name__)


def parse_declarations(document: dict[str, object]) -> list[DeclaredNotification]:
    try:
        parsed = DeclarationDocument.model_validate(document)
    except pydantic.ValidationError as exc:
        raise DeclarationError(f"Invalid declaration: {exc}") from exc
    return [declaration.to_domain() for declaration in parsed.notifications]


def load_declarations(path: Path) -> list[DeclaredNotification]:
    """Read ``[[notification]]`` tables from ``path``."""

    try:
        with path.open("rb") as handle:
            document = tomllib.load(handle)
    except FileNotFoundError as exc:
        raise DeclarationError(f"Declaration file not found: {path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise DeclarationError(f"Invalid TOML in {path}: {exc}") from exc

    declarations = parse_declarations(document)
    log.info("Loaded %s notification declaration(s) from %s", len(declarations), path)
    return declarations
