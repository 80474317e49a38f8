"""
Tests for drive letter allocation, platform probes and rclone command lines.
"""

import os
import sys
from unittest.mock import patch

import pytest

from rmount.services.mount_supervisor import (
    DRIVE_LETTERS,
    PlatformFactory,
    PosixDriveProbe,
    UnsupportedPlatformError,
    WindowsDriveProbe,
    available_letters,
)
from rmount.services.mount_supervisor.rclone_command import (
    build_mount_command,
    build_version_command,
    resolve_rclone_executable,
    split_mount_options,
)


class TestAvailableLetters:
    def test_range_is_d_to_z(self):
        assert DRIVE_LETTERS[0] == "D"
        assert DRIVE_LETTERS[-1] == "Z"
        assert len(DRIVE_LETTERS) == 23

    def test_nothing_used(self):
        assert available_letters(set()) == list(DRIVE_LETTERS)

    def test_used_letters_removed_case_insensitive(self):
        assert available_letters({"d", "F"})[:3] == ["E", "G", "H"]

    def test_all_used(self):
        assert available_letters(DRIVE_LETTERS) == []


class TestPosixDriveProbe:
    def test_target_is_directory_under_mount_root(self, tmp_path):
        probe = PosixDriveProbe(tmp_path / "mnt")

        assert probe.mount_target("E") == str(tmp_path / "mnt" / "E")

    def test_prepare_target_creates_directory(self, tmp_path):
        probe = PosixDriveProbe(tmp_path / "mnt")

        target = probe.prepare_target("F")

        assert os.path.isdir(target)

    def test_letter_in_use_only_when_mount_point(self, tmp_path):
        probe = PosixDriveProbe(tmp_path)
        (tmp_path / "E").mkdir()
        (tmp_path / "G").mkdir()

        def fake_ismount(path):
            return os.path.basename(path) == "G"

        with patch("rmount.services.mount_supervisor.drive_letters.os.path.ismount", side_effect=fake_ismount):
            assert probe.used_letters() == {"G"}


class TestWindowsDriveProbe:
    def test_target_format(self):
        assert WindowsDriveProbe().mount_target("E") == "E:"

    def test_uses_listdrives_when_present(self):
        with patch.object(os, "listdrives", create=True, return_value=["C:\\", "D:\\", "z:\\"]):
            assert WindowsDriveProbe().used_letters() == {"C", "D", "Z"}


class TestPlatformFactory:
    @pytest.mark.parametrize(
        "system,expected",
        [
            ("Windows", WindowsDriveProbe),
            ("Linux", PosixDriveProbe),
            ("Darwin", PosixDriveProbe),
            ("FreeBSD", PosixDriveProbe),
            ("OpenBSD", PosixDriveProbe),
        ],
    )
    def test_probe_per_platform(self, settings, system, expected):
        with patch("rmount.services.mount_supervisor.drive_letters.platform.system", return_value=system):
            assert isinstance(PlatformFactory().create_drive_probe(settings), expected)

    def test_undetermined_platform(self, settings):
        with patch("rmount.services.mount_supervisor.drive_letters.platform.system", return_value=""):
            with pytest.raises(UnsupportedPlatformError):
                PlatformFactory().create_drive_probe(settings)


class TestRcloneCommand:
    def test_mount_command_layout(self):
        assert build_mount_command("rclone", "gdrive", "E:", ["--read-only"]) == [
            "rclone", "mount", "gdrive:", "E:", "--vfs-cache-mode", "full", "--read-only",
        ]

    def test_version_command(self):
        assert build_version_command("/usr/bin/rclone") == ["/usr/bin/rclone", "version"]

    def test_split_empty_options(self):
        assert split_mount_options("   ") == []

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX shell quoting")
    def test_split_quoted_options(self):
        assert split_mount_options('--volname "My Drive" --read-only') == [
            "--volname", "My Drive", "--read-only",
        ]

    def test_split_unbalanced_quotes(self):
        with pytest.raises(ValueError):
            split_mount_options('--volname "My Drive')

    def test_resolve_prefers_existing_configured_file(self, tmp_path):
        exe = tmp_path / "rclone"
        exe.write_text("")

        assert resolve_rclone_executable(str(exe)) == str(exe)

    def test_resolve_uses_path_lookup(self):
        with patch("rmount.services.mount_supervisor.rclone_command.shutil.which", return_value="/opt/bin/rclone"):
            assert resolve_rclone_executable("rclone") == "/opt/bin/rclone"

    def test_resolve_falls_back_to_configured_value(self, tmp_path):
        with patch("rmount.services.mount_supervisor.rclone_command.shutil.which", return_value=None), \
                patch("rmount.services.mount_supervisor.rclone_command.sys.executable", str(tmp_path / "python")):
            assert resolve_rclone_executable("rclone-missing") == "rclone-missing"
