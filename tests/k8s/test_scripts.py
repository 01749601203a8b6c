"""
Unit tests for the generated container shell commands.
"""

from vcluster.services.orchestration.kubernetes.scripts import (
    INIT_LOG_FILE,
    INIT_MARKER_FILE,
    INIT_PROGRESS_FILE,
    generate_cp_command,
    generate_init_container_launch,
    generate_rsync_command,
    generate_startup_script,
)


class TestInitContainerLaunch:
    """The one-shot volume population command."""

    def test_skips_when_marker_exists(self):
        script = generate_init_container_launch(["/etc", "/home"])
        assert f"if ! [ -f /mnt{INIT_MARKER_FILE} ]; then" in script

    def test_probe_precedes_branch(self):
        script = generate_init_container_launch(["/etc"])
        probe = script.index("RSYNC_CHECK_STATUS=$?")
        branch = script.index("if [ ${RSYNC_CHECK_STATUS} != 0 ]")
        assert probe < branch
        assert "--info=progress2" in script[:probe]

    def test_cp_fallback_before_rsync(self):
        script = generate_init_container_launch(["/etc", "/home"])
        cp_pos = script.index(generate_cp_command(["/etc", "/home"]))
        rsync_pos = script.index(generate_rsync_command(["/etc", "/home"]))
        assert cp_pos < rsync_pos
        assert "else" in script[cp_pos:rsync_pos]

    def test_marker_written_and_exit_zero(self):
        script = generate_init_container_launch(["/etc"])
        assert script.endswith(f"touch /mnt{INIT_MARKER_FILE}; exit 0")

    def test_single_line_command(self):
        assert "\n" not in generate_init_container_launch(["/etc", "/home"])


class TestCopyCommands:

    def test_rsync_logs_to_volume(self):
        command = generate_rsync_command(["/etc", "/home"])
        assert "mkdir -p /mnt/var/log/vcluster;" in command
        assert f"--log-file=/mnt{INIT_LOG_FILE}" in command
        assert "--relative -ax /etc /home /mnt" in command
        assert command.endswith(f"> /mnt{INIT_PROGRESS_FILE}")

    def test_cp_preserves_paths_and_attributes(self):
        assert generate_cp_command(["/etc", "/home"]) == "cp --parents -ax /etc /home /mnt"

    def test_dirs_are_shell_quoted(self):
        command = generate_cp_command(["/opt/my app"])
        assert "'/opt/my app'" in command


class TestStartupScript:

    def test_adds_cluster_service_to_search_list(self):
        script = generate_startup_script("kdhs-spark")
        assert "search kdhs-spark.\\1 \\1" in script
        assert script.endswith("exit 0")
