"""Canonicalization and containment checks against the served root."""

from pathlib import Path, PurePath

from .errors import ConfigError, OutsideRoot


def canonical_root(directory) -> Path:
    """
    Canonicalize the served directory once at start-up.

    Args:
        directory: Directory to serve, relative or absolute

    Returns:
        Absolute, symlink-resolved path of the directory

    Raises:
        ConfigError: If the directory does not exist or is not a directory
    """
    try:
        root = Path(directory).resolve(strict=True)
    except OSError as e:
        raise ConfigError(f"Cannot serve {str(directory)!r}: {e.strerror or e}") from e
    if not root.is_dir():
        raise ConfigError(f"Cannot serve {str(directory)!r}: not a directory")
    return root


def is_contained(path: Path, root: Path) -> bool:
    """Component-wise prefix test: /served-abc is not inside /served."""
    return path == root or root in path.parents


def resolve(root: Path, relative: PurePath) -> Path:
    """
    Join a relative candidate onto the served root and canonicalize it.

    The join happens before canonicalization so that symlinks and relative
    components inside the tree are resolved before the containment check.

    Args:
        root: Canonical served root
        relative: Candidate path relative to the root

    Returns:
        Canonical absolute path inside root

    Raises:
        OutsideRoot: If the canonical path escapes root
        OSError: If the target does not exist or cannot be traversed
    """
    if relative.anchor:
        raise OutsideRoot(relative, root)
    canonical = root.joinpath(relative).resolve(strict=True)
    if not is_contained(canonical, root):
        raise OutsideRoot(canonical, root)
    return canonical
