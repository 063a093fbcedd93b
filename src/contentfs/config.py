"""AccessPolicy — allow-listed directories for the local disk store."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

CONTENT_DIR_ENV = "CONTENTFS_CONTENT_DIR"
"""Adds one directory to both allow-lists (tests, ad hoc content roots).

This is the only external knob on the security boundary.
"""


def _canonical(path: str | Path) -> Path:
    return Path(path).expanduser().resolve()


@dataclass(frozen=True)
class AccessPolicy:
    """Directories a local store may read from and write to.

    Reads may reach into shared/system content roots that must never be
    write targets, so the two lists are separate.  Paths are canonicalized
    (symlinks resolved) on construction.
    """

    read_dirs: tuple[Path, ...] = field(default_factory=tuple)
    write_dirs: tuple[Path, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "read_dirs", tuple(_canonical(d) for d in self.read_dirs))
        object.__setattr__(self, "write_dirs", tuple(_canonical(d) for d in self.write_dirs))

    @classmethod
    def for_base_dir(
        cls,
        base_dir: str | Path,
        *,
        extra_read_dirs: tuple[str | Path, ...] | list[str | Path] = (),
        include_env: bool = True,
    ) -> AccessPolicy:
        """Read and write the base directory; read (only) the extras."""
        read_dirs: list[str | Path] = [base_dir, *extra_read_dirs]
        write_dirs: list[str | Path] = [base_dir]
        if include_env:
            env_dir = env_content_dir()
            if env_dir is not None:
                read_dirs.append(env_dir)
                write_dirs.append(env_dir)
        return cls(read_dirs=tuple(read_dirs), write_dirs=tuple(write_dirs))

    def with_env(self) -> AccessPolicy:
        """Return a copy extended by ``CONTENTFS_CONTENT_DIR`` when it is set."""
        env_dir = env_content_dir()
        if env_dir is None:
            return self
        return AccessPolicy(
            read_dirs=(*self.read_dirs, env_dir),
            write_dirs=(*self.write_dirs, env_dir),
        )

    def can_read(self, canonical_path: str | Path) -> bool:
        return is_path_allowed(canonical_path, self.read_dirs)

    def can_write(self, canonical_path: str | Path) -> bool:
        return is_path_allowed(canonical_path, self.write_dirs)


def env_content_dir() -> Path | None:
    value = os.environ.get(CONTENT_DIR_ENV, "").strip()
    if not value:
        return None
    logger.debug("Allow-list extended by %s=%s", CONTENT_DIR_ENV, value)
    return _canonical(value)


def is_path_allowed(canonical_path: str | Path, allowed_dirs: tuple[Path, ...]) -> bool:
    """True if *canonical_path* is one of *allowed_dirs* or lies beneath one."""
    path = Path(canonical_path)
    for allowed in allowed_dirs:
        try:
            path.relative_to(allowed)
        except ValueError:
            continue
        return True
    return False
