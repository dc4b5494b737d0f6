"""Grails artefact resources and the shared resource loader.

PluginBuildSettings lists the artefact sources of an application and its
plugins. GrailsResourceLoader resolves class names against those sources.
configure_resource_loader() builds a loader and registers it in the
module-level holder, where the injection phase and other components can
retrieve it with get_resource_loader().
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Sequence

logger = logging.getLogger(__name__)

# grails-app subdirectories that never hold compilable artefacts
NON_ARTEFACT_DIRS = frozenset({"views", "i18n"})


class PluginBuildSettings:
    """Locates artefact sources for an application and its plugins."""

    def __init__(self, base_dir: Path, plugin_dirs: Sequence[Path] = ()):
        self.base_dir = Path(base_dir)
        self.plugin_dirs = [Path(p) for p in plugin_dirs]

    def get_artefact_resources(self) -> list[Path]:
        """Every Groovy source under grails-app/ of the app and each plugin.

        Returns:
            Absolute paths, sorted per project root
        """
        resources: list[Path] = []
        for root in [self.base_dir, *self.plugin_dirs]:
            grails_app = root / "grails-app"
            if not grails_app.is_dir():
                logger.debug(f"No grails-app directory in {root}")
                continue
            found = [
                path.absolute()
                for path in grails_app.rglob("*.groovy")
                if path.relative_to(grails_app).parts[0] not in NON_ARTEFACT_DIRS
            ]
            resources.extend(sorted(found))
        logger.debug(f"Found {len(resources)} artefact resources")
        return resources


class GrailsResourceLoader:
    """Resolves Groovy class names to artefact source files."""

    def __init__(self, resources: Sequence[Path]):
        self.resources = [Path(r).absolute() for r in resources]
        self._by_path = set(self.resources)

    def load_groovy_source(self, class_name: str) -> Optional[Path]:
        """Find the source for a class name such as 'com.acme.Book'.

        The class may live in a package directory under its artefact
        directory (grails-app/domain/com/acme/Book.groovy) or directly in it.
        """
        relative = class_name.replace(".", "/") + ".groovy"
        simple = class_name.rsplit(".", 1)[-1] + ".groovy"
        fallback = None
        for resource in self.resources:
            posix = resource.as_posix()
            if posix.endswith("/" + relative):
                return resource
            if fallback is None and resource.name == simple:
                fallback = resource
        return fallback

    def is_artefact(self, path: Path) -> bool:
        return Path(path).absolute() in self._by_path

    def __len__(self) -> int:
        return len(self.resources)


_resource_loader: Optional[GrailsResourceLoader] = None


def get_resource_loader() -> Optional[GrailsResourceLoader]:
    """Get the registered resource loader, or None if none was configured."""
    return _resource_loader


def set_resource_loader(loader: Optional[GrailsResourceLoader]) -> None:
    global _resource_loader
    _resource_loader = loader


def configure_resource_loader(settings: PluginBuildSettings) -> GrailsResourceLoader:
    """Build a loader over the artefact resources and register it.

    Args:
        settings: Plugin build settings supplying the artefact resources

    Returns:
        The registered GrailsResourceLoader
    """
    loader = GrailsResourceLoader(settings.get_artefact_resources())
    set_resource_loader(loader)
    logger.info(f"Resource loader configured with {len(loader)} artefact resources")
    return loader
