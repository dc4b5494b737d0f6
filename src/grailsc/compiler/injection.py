"""Grails-aware injection.

GrailsAwareInjectionOperation runs during the CANONICALIZATION phase,
after sources are parsed and resolved and before classes are generated.
It applies every registered ClassInjector to the sources that are Grails
artefacts.

extend_compile_unit() registers exactly one injection operation on a
compilation unit.
"""

import logging
import re
from typing import Optional, Protocol, Sequence, runtime_checkable

from grailsc.resources import get_resource_loader

from .phases import CompilationUnit, Phase, SourceUnit
from .source_kinds import SourceKind

logger = logging.getLogger(__name__)

GRAILS_APP_DIR = "grails-app"
DOMAIN_DIR = "domain"


@runtime_checkable
class ClassInjector(Protocol):
    """Adds members or metadata to an artefact's source."""

    def should_inject(self, source: SourceUnit) -> bool:
        ...

    def perform_injection(self, source: SourceUnit) -> None:
        ...


def _path_parts(source: SourceUnit) -> tuple[str, ...]:
    return tuple(source.path.as_posix().split("/"))


def is_domain_class(source: SourceUnit) -> bool:
    """True for Groovy sources under grails-app/domain."""
    parts = _path_parts(source)
    return source.kind is SourceKind.GROOVY and any(
        parts[i] == GRAILS_APP_DIR and parts[i + 1] == DOMAIN_DIR for i in range(len(parts) - 1)
    )


class DomainClassInjector:
    """Adds the persistent `id` and `version` properties to domain classes."""

    PROPERTIES = ("id", "version")

    def should_inject(self, source: SourceUnit) -> bool:
        return is_domain_class(source)

    def perform_injection(self, source: SourceUnit) -> None:
        if source.text is None:
            return
        class_decl = re.compile(rf"\bclass\s+{re.escape(source.class_name)}\b[^{{]*\{{")
        match = class_decl.search(source.text)
        if match is None:
            logger.debug(f"No class declaration for {source.class_name} in {source.path}")
            return

        body = self._class_body(source.text, match.end())
        missing = [name for name in self.PROPERTIES if not self._declares(body, name)]
        if not missing:
            return

        members = "".join(f"\n    Long {name}" for name in missing)
        source.text = source.text[: match.end()] + members + source.text[match.end():]
        source.injected.extend(missing)
        logger.debug(f"Injected {', '.join(missing)} into domain class {source.qualified_name}")

    @staticmethod
    def _class_body(text: str, start: int) -> str:
        """Class body text at its own nesting level, nested blocks removed."""
        depth = 1
        kept = []
        for char in text[start:]:
            if char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    break
            elif depth == 1:
                kept.append(char)
        return "".join(kept)

    @staticmethod
    def _declares(text: str, name: str) -> bool:
        return re.search(rf"^[ \t]*(?:\w+[ \t]+)+{name}\b", text, re.MULTILINE) is not None


class GrailsAwareInjectionOperation:
    """Applies class injectors to Grails artefact sources."""

    def __init__(self, injectors: Optional[Sequence[ClassInjector]] = None):
        self.injectors: list[ClassInjector] = list(injectors) if injectors is not None else [DomainClassInjector()]

    def is_artefact(self, source: SourceUnit) -> bool:
        """Decide artefact membership from the registered resource loader, or by path."""
        loader = get_resource_loader()
        if loader is not None:
            return loader.is_artefact(source.path)
        return GRAILS_APP_DIR in _path_parts(source)

    def __call__(self, unit: CompilationUnit) -> None:
        for source in unit.sources:
            if not self.is_artefact(source):
                continue
            source.metadata["grails_artefact"] = True
            for injector in self.injectors:
                if injector.should_inject(source):
                    injector.perform_injection(source)


def extend_compile_unit(unit: CompilationUnit) -> CompilationUnit:
    """Register the Grails-aware injection at CANONICALIZATION, once per unit."""
    if not unit.has_operation(GrailsAwareInjectionOperation):
        unit.add_phase_operation(GrailsAwareInjectionOperation(), Phase.CANONICALIZATION)
    return unit
