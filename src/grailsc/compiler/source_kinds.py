"""Source kinds and output path mapping.

Recognizes the two source kinds a Grails build compiles (Groovy and Java)
and maps each candidate filename to the .class file it is expected to
produce under the destination directory.
"""

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

CLASS_SUFFIX = ".class"


class SourceKind(Enum):
    """Recognized source file kinds, valued by their filename suffix."""

    GROOVY = ".groovy"
    JAVA = ".java"

    @property
    def suffix(self) -> str:
        return self.value

    def __str__(self) -> str:
        """Return the kind name used in file listings (e.g. 'groovy')."""
        return self.name.lower()


@dataclass(frozen=True)
class SourceCandidate:
    """A relative source filename together with its kind.

    Attributes:
        filename: Relative path as listed by the directory walker
        kind: Source kind, decided by suffix
    """

    filename: str
    kind: SourceKind

    @classmethod
    def classify(cls, filename: str) -> Optional["SourceCandidate"]:
        """Classify a filename by suffix.

        Returns None for unrecognized suffixes, and for names that consist of
        nothing but the suffix.
        """
        for kind in SourceKind:
            if filename.endswith(kind.suffix) and len(filename) > len(kind.suffix):
                return cls(filename=filename, kind=kind)
        return None

    @property
    def base_name(self) -> str:
        """Filename with the source suffix stripped."""
        return self.filename[: -len(self.kind.suffix)]

    @property
    def output_name(self) -> str:
        """Relative name of the expected compiled output."""
        return self.base_name + CLASS_SUFFIX

    @property
    def root_output_name(self) -> str:
        """Final path segment of the output name, for root-package lookups."""
        return _last_segment(self.base_name) + CLASS_SUFFIX

    @property
    def is_nested(self) -> bool:
        """True when the filename contains a directory separator."""
        return _last_segment(self.filename) != self.filename


@dataclass(frozen=True)
class OutputMapping:
    """A source file paired with the compiled output it is checked against."""

    source: Path
    output: Path


def _last_segment(name: str) -> str:
    # Listings may use either '/' or the platform separator.
    return name.replace(os.sep, "/").rsplit("/", 1)[-1]
