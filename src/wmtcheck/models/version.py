"""Semantic version parsing for registry versions."""

import re

from pydantic import BaseModel, Field

from wmtcheck.errors import MalformedVersion

# Pre-release and build metadata start at the first "-" or "+"
_SUFFIX_RE = re.compile(r"[-+].*$")
_NUMBER_RE = re.compile(r"[0-9]+")


class Version(BaseModel):
    """A parsed major.minor.patch version."""

    raw: str
    major: int = Field(ge=0)
    minor: int = Field(ge=0)
    patch: int = Field(ge=0)

    @classmethod
    def parse(cls, text: str | None) -> "Version":
        """Parse a version string.

        Only the first three dot-separated components are read, so "1.2.3.4"
        and "1.0.0-alpha.1" parse as 1.2.3 and 1.0.0. Anything with fewer than
        three components, or a non-numeric one among the first three, is
        rejected.

        Raises:
            MalformedVersion: If the text is not a valid version.
        """
        if not text:
            raise MalformedVersion(text)

        segments = _SUFFIX_RE.sub("", text.strip()).split(".")
        if len(segments) < 3:
            raise MalformedVersion(text)

        numbers = []
        for segment in segments[:3]:
            if not _NUMBER_RE.fullmatch(segment):
                raise MalformedVersion(text)
            numbers.append(int(segment))

        major, minor, patch = numbers
        return cls(raw=text, major=major, minor=minor, patch=patch)

    def has_major_release(self) -> bool:
        return self.major > 0

    def has_minor_release(self) -> bool:
        return self.minor >= 1

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"
