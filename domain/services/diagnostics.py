from __future__ import annotations

import logging

from domain.models import Diagnostic

IMAGE_PROBE_FAILED = "image_probe_failed"
IMAGE_LOAD_FAILED = "image_load_failed"
FONT_NOT_FOUND = "font_not_found"
FONT_REGISTRATION_FAILED = "font_registration_failed"
INVALID_COLOR = "invalid_color"


class DiagnosticLog:
    """Collects per-element warnings and mirrors them to a logger."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.entries: list[Diagnostic] = []
        self._logger = logger or logging.getLogger(__name__)

    def warn(self, code: str, message: str, element: str | None = None) -> Diagnostic:
        diagnostic = Diagnostic(code=code, message=message, element=element)
        self.entries.append(diagnostic)
        self._logger.warning(message)
        return diagnostic

    def extend(self, diagnostics: list[Diagnostic]) -> None:
        self.entries.extend(diagnostics)

    def __len__(self) -> int:
        return len(self.entries)
