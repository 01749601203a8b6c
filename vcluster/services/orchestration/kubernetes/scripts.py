"""
Shell commands run inside StatefulSet member containers.

- Init container: populates the persistent volume with the image's content
  of the persisted directories, once per volume.
- App container postStart hook: adds the cluster service domain to the
  resolv.conf search list.

The init container entrypoint takes a single command string, so the rsync
probe and the copy branches are all generated here as one string. Nothing
else should build or inspect these strings.
"""

import posixpath
import shlex
from typing import Sequence

from .volumes import INIT_MOUNT_PATH

# Written (under the mounted volume) once the volume has been populated
INIT_MARKER_FILE = "/etc/vcluster.init"

# rsync log and progress output (under the mounted volume)
INIT_LOG_FILE = "/var/log/vcluster/init.log"
INIT_PROGRESS_FILE = "/var/log/vcluster/init-progress.log"

# Written by the postStart hook, in the container's own /tmp
STARTUP_LOG_FILE = "/tmp/vcluster-poststart.log"


def generate_rsync_probe_command() -> str:
    """
    Check that rsync is installed and supports every option the copy uses.

    Older rsync releases lack --info=progress2. The probe log file is never
    read; passing --log-file only checks the option is accepted. Sets
    RSYNC_CHECK_STATUS to 0 when rsync is usable.
    """
    return (
        "rsync --log-file=./rsync-check-status-dummy.log --info=progress2 "
        "--relative -ax --version >/dev/null 2>&1; RSYNC_CHECK_STATUS=$?;"
    )


def _quoted(persist_dirs: Sequence[str]) -> str:
    return " ".join(shlex.quote(d) for d in persist_dirs)


def generate_rsync_command(persist_dirs: Sequence[str]) -> str:
    """Copy with rsync, keeping a log and progress output on the volume."""
    log_dir = posixpath.dirname(INIT_LOG_FILE)
    return (
        f"mkdir -p {INIT_MOUNT_PATH}{log_dir}; "
        f"rsync --log-file={INIT_MOUNT_PATH}{INIT_LOG_FILE} --info=progress2 "
        f"--relative -ax {_quoted(persist_dirs)} {INIT_MOUNT_PATH} "
        f"> {INIT_MOUNT_PATH}{INIT_PROGRESS_FILE}"
    )


def generate_cp_command(persist_dirs: Sequence[str]) -> str:
    """Copy with cp; no progress reporting."""
    return f"cp --parents -ax {_quoted(persist_dirs)} {INIT_MOUNT_PATH}"


def generate_init_container_launch(persist_dirs: Sequence[str]) -> str:
    """
    Generate the init container command populating the persistent volume.

    The copy is skipped if the marker file exists on the volume, so a
    restarted init container never copies over files the app has already
    changed. Either way the marker is (re)written and the command exits 0.

    Args:
        persist_dirs: Resolved directories to persist

    Returns:
        Command string for `/bin/bash -c`
    """
    marker = f"{INIT_MOUNT_PATH}{INIT_MARKER_FILE}"
    return (
        f"{generate_rsync_probe_command()} "
        f"if ! [ -f {marker} ]; then "
        f"if [ ${{RSYNC_CHECK_STATUS}} != 0 ]; then {generate_cp_command(persist_dirs)}; "
        f"else {generate_rsync_command(persist_dirs)}; fi; "
        f"fi; "
        f"touch {marker}; exit 0"
    )


def generate_startup_script(cluster_service: str) -> str:
    """
    Generate the app container postStart command.

    Waits up to 60s for resolv.conf, then prefixes the first search domain
    with the cluster service name so members resolve each other by short
    hostname.
    """
    return (
        f"exec 2>>{STARTUP_LOG_FILE}; set -x;"
        "Retries=60; while [[ $Retries && ! -s /etc/resolv.conf ]]; do "
        "sleep 1; Retries=$(expr $Retries - 1); done; "
        "sed \"s/^search \\([^ ]\\+\\)/search "
        f"{cluster_service}"
        ".\\1 \\1/\" /etc/resolv.conf > /tmp/resolv.conf.new && "
        "cat /tmp/resolv.conf.new > /etc/resolv.conf;"
        "rm -f /tmp/resolv.conf.new;"
        "chmod 755 /run;"
        "exit 0"
    )
