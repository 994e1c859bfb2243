"""Profile cache: persist the project profile artifact between rounds.

Stores one ProfileArtifact per project in <project>/.scout/profile.json.
Caching only saves work: read failures mean "no cache" and write failures
are logged and dropped.
"""

import logging
from pathlib import Path
from typing import Protocol

from scout.discovery.models import ProfileArtifact

logger = logging.getLogger(__name__)


class ProfileStore(Protocol):
    """Read/write access to cached profile artifacts, keyed by project path."""

    def read(self, project: Path) -> ProfileArtifact | None: ...

    def write(self, project: Path, artifact: ProfileArtifact) -> None: ...


class FileProfileStore:
    """ProfileStore backed by a JSON file inside each project.

    No locking: overlapping rounds for one project race and the last write
    wins.
    """

    def __init__(self, directory: str = ".scout", filename: str = "profile.json") -> None:
        self._directory = directory
        self._filename = filename

    def path_for(self, project: Path) -> Path:
        return Path(project) / self._directory / self._filename

    def read(self, project: Path) -> ProfileArtifact | None:
        """Load the cached artifact.

        Returns None if the file doesn't exist, is corrupt, or has an
        unsupported shape.
        """
        path = self.path_for(project)
        if not path.exists():
            return None
        try:
            return ProfileArtifact.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable profile cache %s: %s", path, exc)
            return None

    def write(self, project: Path, artifact: ProfileArtifact) -> None:
        """Overwrite the cached artifact, creating the directory if needed."""
        path = self.path_for(project)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(artifact.model_dump_json(by_alias=True, indent=2), encoding="utf-8")
        except OSError as exc:
            logger.warning("Could not write profile cache %s: %s", path, exc)


class InMemoryProfileStore:
    """ProfileStore double that never touches the filesystem."""

    def __init__(self, artifacts: dict[Path, ProfileArtifact] | None = None) -> None:
        self.artifacts: dict[Path, ProfileArtifact] = dict(artifacts or {})
        self.writes = 0

    def read(self, project: Path) -> ProfileArtifact | None:
        return self.artifacts.get(Path(project))

    def write(self, project: Path, artifact: ProfileArtifact) -> None:
        self.writes += 1
        self.artifacts[Path(project)] = artifact
