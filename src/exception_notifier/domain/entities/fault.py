# src/exception_notifier/domain/entities/fault.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Fault Entity.

Purpose:
    Immutable snapshot of an exception captured at the request boundary:
    its kind, message, innermost-first stack frames and, for template
    rendering failures, the template file and line.

Layer:
    domain/entities
"""

from __future__ import annotations

import traceback
import uuid
from dataclasses import dataclass, field

from jinja2 import TemplateSyntaxError

from exception_notifier.domain.exceptions.base import TemplateRenderError


@dataclass(frozen=True, slots=True)
class Frame:
    """A single stack frame.

    Attributes:
        file: Absolute (or as-reported) source path.
        line: 1-based line number.
        name: Function name executing in the frame.
    """

    file: str
    line: int
    name: str = ""

    def render(self) -> str:
        """Return the frame in ``path:line:in `name``` form."""
        return f"{self.file}:{self.line}:in `{self.name}`"


@dataclass(frozen=True, slots=True)
class TemplateOrigin:
    """File and line of a template that failed to render."""

    file_name: str
    line_number: int


@dataclass(frozen=True, slots=True)
class Fault:
    """Captured fault.

    Attributes:
        kind:
            Discriminant of the fault category (exception class name).
        message:
            ``str(exc)``.
        origin:
            Stack frames ordered innermost-first.
        lineage:
            Class names along the exception's MRO, bare and module-qualified.
            Rule sets naming a base class match every subclass through it.
        template_origin:
            Set when the fault arose from template rendering.
        fault_id:
            Opaque correlation id for logs.
        exception:
            The original exception object (not part of equality).
    """

    kind: str
    message: str
    origin: tuple[Frame, ...] = ()
    lineage: frozenset[str] = frozenset()
    template_origin: TemplateOrigin | None = None
    fault_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    exception: BaseException | None = field(default=None, compare=False, repr=False)

    @classmethod
    def from_exception(cls, exc: BaseException) -> Fault:
        """Capture ``exc`` as a Fault.

        Args:
            exc: Exception caught at the boundary. It need not have been raised;
                an exception without a traceback yields an empty origin.

        Returns:
            Fault: Immutable snapshot.
        """
        summaries = traceback.extract_tb(exc.__traceback__) if exc.__traceback__ else []
        origin = tuple(
            Frame(file=s.filename, line=s.lineno or 0, name=s.name) for s in reversed(summaries)
        )
        return cls(
            kind=type(exc).__name__,
            message=str(exc),
            origin=origin,
            lineage=_lineage(type(exc)),
            template_origin=_template_origin(exc),
            exception=exc,
        )

    def is_a(self, kinds: frozenset[str] | set[str]) -> bool:
        """Return True when any name in this fault's lineage is in ``kinds``."""
        return not self.lineage.isdisjoint(kinds) or self.kind in kinds

    @property
    def backtrace(self) -> list[str]:
        """Rendered frames, innermost-first."""
        return [f.render() for f in self.origin]


def _lineage(exc_type: type[BaseException]) -> frozenset[str]:
    names: set[str] = set()
    for klass in exc_type.__mro__:
        if not issubclass(klass, BaseException):
            continue
        names.add(klass.__name__)
        names.add(f"{klass.__module__}.{klass.__qualname__}")
    return frozenset(names)


def _template_origin(exc: BaseException) -> TemplateOrigin | None:
    if isinstance(exc, TemplateRenderError):
        return TemplateOrigin(file_name=exc.file_name, line_number=exc.line_number)
    if isinstance(exc, TemplateSyntaxError) and exc.name:
        return TemplateOrigin(file_name=exc.name, line_number=exc.lineno)
    return None
