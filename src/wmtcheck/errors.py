"""Exceptions raised while resolving and checking dependencies."""


class WmtError(Exception):
    """Base class for all wmtcheck errors."""


class InvalidIdentifier(WmtError):
    """Raised when a manifest file cannot be read or parsed."""

    def __init__(self, identifier: str, reason: str) -> None:
        self.identifier = identifier
        super().__init__(f"Could not read dependencies from '{identifier}': {reason}")


class RegistryUnavailable(WmtError):
    """Raised when a package lookup against the registry fails."""

    def __init__(self, name: str, reason: str | None = None) -> None:
        self.name = name
        message = f"Could not retrieve the crate information for '{name}'."
        if reason:
            message = f"{message} {reason}"
        super().__init__(message)


class InvalidRepositoryUrl(WmtError):
    """Raised when a source URL does not point at a GitHub owner/repo."""

    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(f"'{url}' is not a valid GitHub repository URL")


class RepositoryUnavailable(WmtError):
    """Raised when a GitHub API call fails."""


class DocumentationUnavailable(WmtError):
    """Raised when the documentation host cannot be reached."""


class MalformedVersion(WmtError):
    """Raised when a version string is not major.minor.patch."""

    def __init__(self, text: str | None) -> None:
        self.text = text
        super().__init__(f"'{text}' is not a valid major.minor.patch version")


class CoverageUnparseable(WmtError):
    """Raised when a documentation page has no readable coverage figure."""


class MissingSourceUrl(WmtError):
    """Raised when a check needs GitHub data but the dependency has no source URL."""

    def __init__(self, name: str) -> None:
        self.name = name
        label = name or "The dependency"
        super().__init__(f"{label} is missing source URL.")


class UnknownCriterion(WmtError):
    """Raised when a criterion selector names no catalog entry."""

    def __init__(self, number: str) -> None:
        self.number = number
        super().__init__(f"There is no question numbered '{number}'")
