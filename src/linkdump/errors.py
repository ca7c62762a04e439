from __future__ import annotations

from pathlib import Path


class LinkdumpError(Exception):
    pass


class ConstraintViolation(LinkdumpError):
    def __init__(self, key: str, value: str) -> None:
        super().__init__(f"unique constraint on {key} violated by {value!r}")
        self.key = key
        self.value = value


class SchemaVersionMismatch(LinkdumpError):
    def __init__(self, found: int, supported: int) -> None:
        super().__init__(
            f"database schema version {found} is newer than the supported version "
            f"{supported}; upgrade linkdump before using this database"
        )
        self.found = found
        self.supported = supported


class IOFailure(LinkdumpError):
    def __init__(self, path: str | Path, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = str(path)
        self.reason = reason


class RenderIncompleteLink(LinkdumpError):
    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"cannot render {url!r}: {reason}")
        self.url = url
        self.reason = reason


class StoreError(LinkdumpError):
    def __init__(self, path: str | Path, reason: str) -> None:
        super().__init__(f"{path}: storage error: {reason}")
        self.path = str(path)
        self.reason = reason
