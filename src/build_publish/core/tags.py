"""Per-variant tag records and their persisted state files.

Each build variant owns one JSON file::

    {"name": "v1.4.27-release", "buildNumber": 28, "lastTag": "v1.4.27-release"}

``lastTag`` is optional. The file is written by the resolve stage only;
everything else reads it through TagStore.
"""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from build_publish.exceptions import TagStateError

if TYPE_CHECKING:
    from build_publish.config.models import BuildPublishConfig

logger = logging.getLogger(__name__)

DEFAULT_BUILD_NUMBER = 1


def default_release_name(variant: str) -> str:
    """Release name used before a variant has ever been tagged."""
    return f"v0.0.1-{variant}"


@dataclass(frozen=True, slots=True)
class BuildVariant:
    """An independent release line and the artifact it produces."""

    name: str
    output_path: Path | None = None

    def __post_init__(self) -> None:
        if not self.name or any(c in self.name for c in "/\\") or self.name in {".", ".."}:
            raise ValueError(f"Invalid build variant name: {self.name!r}")

    @property
    def output_file_name(self) -> str | None:
        return self.output_path.name if self.output_path else None


class TagRecord(BaseModel):
    """Release name and build counter resolved for a variant."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, strict=True)

    name: str = Field(min_length=1)
    build_number: int = Field(alias="buildNumber", ge=1)
    last_tag: str | None = Field(default=None, alias="lastTag")

    @classmethod
    def default(cls, variant: str) -> TagRecord:
        return cls(name=default_release_name(variant), build_number=DEFAULT_BUILD_NUMBER)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=2) + "\n"

    def describe(self) -> str:
        text = f"{self.name} (build {self.build_number})"
        if self.last_tag and self.last_tag != self.name:
            text += f", from tag {self.last_tag}"
        return text


class TagStore:
    """Reads persisted tag records, one file per variant."""

    def __init__(self, config: BuildPublishConfig, root: Path) -> None:
        self.config = config
        self.root = root

    def path_for(self, variant: str) -> Path:
        return self.config.state_path(self.root, variant)

    def exists(self, variant: str) -> bool:
        return self.path_for(variant).is_file()

    def load(self, variant: str) -> TagRecord | None:
        """Load the record for ``variant``.

        Returns:
            The record, or None when the variant has no state file yet

        Raises:
            TagStateError: If the file exists but cannot be parsed
        """
        path = self.path_for(variant)
        try:
            content = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise TagStateError(f"Cannot read tag state {path}: {e}", path=str(path)) from e
        return parse_tag_record(content, path)

    def version_stamp(self, variant: str) -> tuple[int, str]:
        """Version code and name to stamp on the variant's artifact."""
        record = self.load(variant) or TagRecord.default(variant)
        return record.build_number, record.name


def parse_tag_record(content: str, path: Path | None = None) -> TagRecord:
    """Parse the persisted JSON shape of a TagRecord.

    Raises:
        TagStateError: If the content is not a valid record
    """
    try:
        return TagRecord.model_validate_json(content)
    except ValidationError as e:
        where = f" in {path}" if path else ""
        first = e.errors()[0]
        loc = ".".join(str(p) for p in first["loc"]) or "<root>"
        raise TagStateError(
            f"Malformed tag state{where}: {loc}: {first['msg']}",
            path=str(path) if path else None,
        ) from e


def write_tag_record(path: Path, record: TagRecord) -> None:
    """Persist ``record`` atomically.

    Readers never observe a partial file: the content goes to a temporary
    file in the same directory which then replaces the target.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(record.to_json())
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    logger.debug("wrote tag state %s", path)
