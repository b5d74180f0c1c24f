"""Tests for the command line interface."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
from typer.testing import CliRunner

from build_publish import __version__
from build_publish.cli.app import app
from build_publish.config.models import BuildPublishConfig
from build_publish.core.tags import TagRecord, write_tag_record

if TYPE_CHECKING:
    from conftest import GitRepoBuilder

runner = CliRunner()


def state_path(project: Path, variant: str) -> Path:
    return BuildPublishConfig().state_path(project, variant)


class TestCli:
    """Tests for the build-publish commands."""

    def test_version(self):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_get_last_tag(self, temp_git_repo_with_pyproject: Path, git_builder: GitRepoBuilder):
        git_builder.tag("v1.0.3-release")

        result = runner.invoke(
            app, ["--path", str(temp_git_repo_with_pyproject), "get-last-tag", "release"]
        )

        assert result.exit_code == 0, result.output
        record = json.loads(state_path(temp_git_repo_with_pyproject, "release").read_text())
        assert record == {"name": "v1.0.3-release", "buildNumber": 4, "lastTag": "v1.0.3-release"}

    def test_get_last_tag_with_release_name(self, temp_git_repo_with_pyproject: Path):
        result = runner.invoke(
            app,
            [
                "--path",
                str(temp_git_repo_with_pyproject),
                "get-last-tag",
                "release",
                "--release-name",
                "v2.0.0-release",
            ],
        )

        assert result.exit_code == 0, result.output
        record = json.loads(state_path(temp_git_repo_with_pyproject, "release").read_text())
        assert record == {"name": "v2.0.0-release", "buildNumber": 1}

    def test_print_last_increased_tag_is_read_only(self, temp_git_repo_with_pyproject: Path):
        result = runner.invoke(
            app, ["--path", str(temp_git_repo_with_pyproject), "print-last-increased-tag", "qa"]
        )

        assert result.exit_code == 0
        assert "v0.0.1-qa" in result.stdout
        assert not state_path(temp_git_repo_with_pyproject, "qa").exists()

    def test_stamp(self, temp_git_repo_with_pyproject: Path):
        write_tag_record(
            state_path(temp_git_repo_with_pyproject, "qa"),
            TagRecord(name="v1.1.4-qa", build_number=5),
        )

        result = runner.invoke(app, ["--path", str(temp_git_repo_with_pyproject), "stamp", "qa"])

        assert result.exit_code == 0
        assert json.loads(result.stdout) == {"versionCode": 5, "versionName": "v1.1.4-qa"}

    def test_stamp_corrupt_state(self, temp_git_repo_with_pyproject: Path):
        path = state_path(temp_git_repo_with_pyproject, "qa")
        path.parent.mkdir(parents=True)
        path.write_text("oops", encoding="utf-8")

        result = runner.invoke(app, ["--path", str(temp_git_repo_with_pyproject), "stamp", "qa"])

        assert result.exit_code == 1

    def test_generate_and_send_without_targets(
        self, temp_git_repo_with_pyproject: Path, git_builder: GitRepoBuilder
    ):
        git_builder.commit("APP-1 offline mode #changelog")
        project = str(temp_git_repo_with_pyproject)

        generated = runner.invoke(app, ["--path", project, "generate-changelog", "release"])
        sent = runner.invoke(app, ["--path", project, "send-changelog", "release"])

        assert generated.exit_code == 0, generated.output
        changelog = BuildPublishConfig().changelog_path(temp_git_repo_with_pyproject, "release")
        assert changelog.read_text(encoding="utf-8") == "• APP-1 offline mode\n"
        assert sent.exit_code == 0
        assert "No notification targets configured" in sent.stdout

    def test_send_before_generate_fails(self, temp_git_repo_with_pyproject: Path):
        result = runner.invoke(
            app, ["--path", str(temp_git_repo_with_pyproject), "send-changelog", "release"]
        )

        assert result.exit_code == 1

    def test_run_multiple_variants(
        self, temp_git_repo_with_pyproject: Path, git_builder: GitRepoBuilder
    ):
        git_builder.commit("new screen #changelog")

        result = runner.invoke(
            app,
            ["--path", str(temp_git_repo_with_pyproject), "run", "debug", "release", "-j", "2"],
        )

        assert result.exit_code == 0, result.output
        assert state_path(temp_git_repo_with_pyproject, "debug").is_file()
        assert state_path(temp_git_repo_with_pyproject, "release").is_file()

    def test_outside_git_repository(self, tmp_path: Path):
        (tmp_path / "pyproject.toml").write_text('[project]\nname = "x"\n')

        result = runner.invoke(app, ["--path", str(tmp_path), "stamp", "qa"])

        assert result.exit_code == 1

    @pytest.mark.parametrize("variant", ["../escape", "a/b"])
    def test_invalid_variant(self, temp_git_repo_with_pyproject: Path, variant: str):
        result = runner.invoke(
            app, ["--path", str(temp_git_repo_with_pyproject), "stamp", variant]
        )

        assert result.exit_code == 1

    def test_read_only_commands_skip_target_credentials(
        self, temp_git_repo_with_pyproject: Path, monkeypatch: pytest.MonkeyPatch
    ):
        """A Slack table without webhook does not block stamp or the diagnostic."""
        monkeypatch.delenv("BUILD_PUBLISH_SLACK_WEBHOOK_URL", raising=False)
        pyproject = temp_git_repo_with_pyproject / "pyproject.toml"
        pyproject.write_text(
            pyproject.read_text() + '\n[tool.build-publish.slack]\nuser-mentions = ["U1"]\n'
        )
        project = str(temp_git_repo_with_pyproject)

        stamped = runner.invoke(app, ["--path", project, "stamp", "qa"])
        described = runner.invoke(app, ["--path", project, "print-last-increased-tag", "qa"])
        sent = runner.invoke(app, ["--path", project, "send-changelog", "qa"])

        assert stamped.exit_code == 0, stamped.output
        assert described.exit_code == 0, described.output
        assert sent.exit_code == 1
