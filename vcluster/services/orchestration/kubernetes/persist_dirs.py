"""
Persistent Directory Resolution

Decides which member filesystem directories are placed on the role's
persistent volume claim. Two ordered lists are merged:

- default dirs: fixed by the platform, chosen by the role's setup package
- app dirs: declared by the application for the role (may be absent)

The result contains no duplicates and no directory nested inside another
one, because each directory becomes a separate subPath mount of the same
claim. Default dirs come first, then app dirs, each in original order.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple
import posixpath
import logging

from ....models import SetupPackage

logger = logging.getLogger(__name__)


# Always persisted when the role has persistent storage
DEFAULT_MOUNT_FOLDERS: Tuple[str, ...] = ("/etc",)

# Persisted when the role has a setup package using the new layout.
# Superset of DEFAULT_MOUNT_FOLDERS.
APP_CONFIG_DEFAULT_MOUNT_FOLDERS: Tuple[str, ...] = (
    "/etc",
    "/opt/guestconfig",
    "/var/log/guestconfig",
    "/usr/local/bin",
    "/usr/local/lib",
)

# Persisted when the role has a setup package using the legacy layout
APP_CONFIG_LEGACY_DEFAULT_MOUNT_FOLDERS: Tuple[str, ...] = (
    "/etc",
    "/opt",
    "/usr",
)


@dataclass(frozen=True)
class SkippedDir:
    """A directory left out of the result and the directory that covers it."""
    path: str
    covered_by: str
    source: str


@dataclass
class PersistDirResolution:
    dirs: List[str] = field(default_factory=list)
    skipped: List[SkippedDir] = field(default_factory=list)


def default_persist_dirs(setup_info: Optional[SetupPackage]) -> Tuple[str, ...]:
    """Select the default directory table for a role's setup package."""
    if setup_info is None:
        return DEFAULT_MOUNT_FOLDERS
    if setup_info.use_new_setup_layout:
        return APP_CONFIG_DEFAULT_MOUNT_FOLDERS
    return APP_CONFIG_LEGACY_DEFAULT_MOUNT_FOLDERS


def abs_dir(path: str) -> str:
    """Normalize a directory to a clean absolute path ("opt/" -> "/opt")."""
    return posixpath.normpath("/" + path.lstrip("/"))


def _covers(candidate: str, path: str) -> Optional[str]:
    """
    Return "ancestor" if candidate is a proper ancestor of path, "equal" if
    they are the same directory, None otherwise. Both must be normalized.
    """
    if candidate == path:
        return "equal"
    prefix = candidate if candidate.endswith("/") else candidate + "/"
    if path.startswith(prefix):
        return "ancestor"
    return None


def _filter_dirs(
    source_dirs: Sequence[str],
    other_dirs: Sequence[str],
    check_other_dups: bool,
    source_desc: str,
    resolution: PersistDirResolution
) -> None:
    source_abs = [abs_dir(d) for d in source_dirs]
    other_abs = [abs_dir(d) for d in other_dirs]

    for source_index, path in enumerate(source_abs):
        covering_dir = None

        # Same list: ancestors always cover; duplicates only if seen earlier
        for other_index, other in enumerate(source_abs):
            relation = _covers(other, path)
            if relation == "ancestor" or (relation == "equal" and other_index < source_index):
                covering_dir = source_dirs[other_index]
                break

        # Other list: ancestors always cover; duplicates only if asked to
        if covering_dir is None:
            for other_index, other in enumerate(other_abs):
                relation = _covers(other, path)
                if relation == "ancestor" or (relation == "equal" and check_other_dups):
                    covering_dir = other_dirs[other_index]
                    break

        if covering_dir is not None:
            logger.info(
                f"[PERSIST] Skipping {source_dirs[source_index]} from {source_desc} "
                f"persistDirs; dir {covering_dir} covers it"
            )
            resolution.skipped.append(
                SkippedDir(
                    path=source_dirs[source_index],
                    covered_by=covering_dir,
                    source=source_desc
                )
            )
            continue

        resolution.dirs.append(path)


def resolve_persist_dirs(
    default_dirs: Sequence[str],
    app_dirs: Optional[Sequence[str]],
    app_desc: str = "app"
) -> PersistDirResolution:
    """
    Merge default and app directories into a minimal non-overlapping list.

    Each directory is checked, in order, against:
    1. its own list: dropped if another entry is a proper ancestor, or is the
       same directory at an earlier position;
    2. the other list: dropped if an entry there is a proper ancestor (this
       applies to default dirs too, so an app dir can cover a default dir);
    3. the other list, app dirs only: dropped if the same directory is a
       default dir (defaults win ties).

    Args:
        default_dirs: Platform default directories, in order
        app_dirs: App-declared directories, in order, or None
        app_desc: Description of the app dir source used in skip records
            (typically the role id)

    Returns:
        PersistDirResolution with the ordered absolute dirs and the skipped
        entries (path as given, covering path as given, source description)

    Examples:
        >>> resolve_persist_dirs(["/var/log/x"], ["/var/log"]).dirs
        ['/var/log']
        >>> resolve_persist_dirs(["/etc"], ["/etc"]).dirs
        ['/etc']
    """
    app_list = list(app_dirs) if app_dirs is not None else []
    resolution = PersistDirResolution()

    _filter_dirs(default_dirs, app_list, False, "default", resolution)
    if app_dirs is not None:
        _filter_dirs(app_list, default_dirs, True, app_desc, resolution)

    return resolution
