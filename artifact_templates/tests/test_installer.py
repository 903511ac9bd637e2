"""Tests for the conflict guard and the final installation."""

from pathlib import Path

import pytest
from conftest import read_tree

from artifact_templates.core.errors import InstallationError
from artifact_templates.projection.installer import Installer


@pytest.fixture
def scratch(tmp_path: Path) -> Path:
    root = tmp_path / "template-projection-test"
    (root / "src").mkdir(parents=True)
    (root / "config.txt").write_text("projected config")
    (root / "src" / "main.py").write_text("projected main")
    (root / "empty").mkdir()
    return root


class TestInstaller:
    def test_installs_into_new_directory(self, scratch, installation):
        result = Installer().install(scratch, installation, overwrite=False)

        assert result.succeeded
        assert result.installed_paths == ["config.txt", "empty", "src/main.py"]
        assert read_tree(installation) == {
            "config.txt": "projected config",
            "src/main.py": "projected main",
        }
        assert (installation / "empty").is_dir()
        assert not scratch.exists()

    def test_conflict_leaves_installation_untouched(self, scratch, installation):
        installation.mkdir()
        (installation / "config.txt").write_text("existing config")
        (installation / "other.txt").write_text("other")

        result = Installer().install(scratch, installation, overwrite=False)

        assert result.status == "already_exists"
        assert result.conflicting_paths == ["config.txt"]
        assert "config.txt" in result.message
        assert read_tree(installation) == {"config.txt": "existing config", "other.txt": "other"}
        assert not scratch.exists()

    def test_existing_directories_are_not_conflicts(self, scratch, installation):
        (installation / "src").mkdir(parents=True)
        (installation / "src" / "other.py").write_text("other")

        result = Installer().install(scratch, installation, overwrite=False)

        assert result.succeeded
        assert read_tree(installation)["src/other.py"] == "other"

    def test_overwrite_replaces_conflicts_and_preserves_the_rest(self, scratch, installation):
        installation.mkdir()
        (installation / "config.txt").write_text("existing config")
        (installation / "other.txt").write_text("other")

        result = Installer().install(scratch, installation, overwrite=True)

        assert result.succeeded
        assert read_tree(installation) == {
            "config.txt": "projected config",
            "other.txt": "other",
            "src/main.py": "projected main",
        }
        assert not scratch.exists()


class TestTypeMismatches:
    @pytest.fixture
    def nested_scratch(self, tmp_path: Path) -> Path:
        root = tmp_path / "template-projection-nested"
        (root / "src").mkdir(parents=True)
        (root / "aaa.txt").write_text("new")
        (root / "src" / "Main.java").write_text("class Main {}")
        return root

    @pytest.mark.parametrize("overwrite", [False, True])
    def test_file_where_directory_is_projected(self, nested_scratch, installation, overwrite):
        installation.mkdir()
        (installation / "src").write_text("a file")

        result = Installer().install(nested_scratch, installation, overwrite=overwrite)

        assert result.status == "already_exists"
        assert result.conflicting_paths == ["src"]
        assert read_tree(installation) == {"src": "a file"}
        assert not nested_scratch.exists()

    @pytest.mark.parametrize("overwrite", [False, True])
    def test_directory_where_file_is_projected(self, scratch, installation, overwrite):
        (installation / "config.txt").mkdir(parents=True)
        (installation / "config.txt" / "inner.txt").write_text("inner")

        result = Installer().install(scratch, installation, overwrite=overwrite)

        assert result.status == "already_exists"
        assert result.conflicting_paths == ["config.txt"]
        assert read_tree(installation) == {"config.txt/inner.txt": "inner"}
        assert not scratch.exists()


class TestCopyFailures:
    def test_copy_failure_is_wrapped_and_scratch_deleted(self, scratch, installation, monkeypatch):
        def _failing_copy(source, target):
            raise OSError("disk full")

        monkeypatch.setattr("artifact_templates.projection.installer.copy_dir", _failing_copy)

        with pytest.raises(InstallationError, match="disk full"):
            Installer().install(scratch, installation, overwrite=False)

        assert not scratch.exists()
