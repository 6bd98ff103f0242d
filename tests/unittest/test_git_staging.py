# AGPL-3.0 License

"""
Tests for git index access, run against real temporary repositories.
"""

import pytest

from no_dpts.errors import GitError
from no_dpts.git.staging import GitStagingArea, detect_language


class TestDetectLanguage:
    @pytest.mark.parametrize("path,language", [
        ("src/app.py", "python"),
        ("web/index.JS", "javascript"),
        ("web/component.tsx", "typescript"),
        ("src/main.rs", "rust"),
        ("scripts/deploy.sh", "shell"),
        ("README.md", "markdown"),
        ("Makefile", None),
        ("archive.tar.xyz", None),
    ])
    def test_by_extension(self, path, language):
        assert detect_language(path) == language


class TestGitStagingArea:
    def test_discover_from_subdirectory(self, git_repo):
        subdir = git_repo / "src" / "pkg"
        subdir.mkdir(parents=True)

        staging = GitStagingArea.discover(subdir)

        assert staging.repo_root.resolve() == git_repo.resolve()

    def test_discover_outside_repository(self, git_repo, tmp_path, monkeypatch):
        outside = tmp_path / "not-a-repo"
        outside.mkdir()
        monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))

        with pytest.raises(GitError):
            GitStagingArea.discover(outside)

    def test_git_dir(self, git_repo):
        assert GitStagingArea(git_repo).git_dir().resolve() == (git_repo / ".git").resolve()

    def test_nothing_staged(self, git_repo):
        staging = GitStagingArea(git_repo)

        snapshot = staging.capture_snapshot()

        assert staging.list_staged() == []
        assert snapshot.is_empty
        assert snapshot.diff == ""

    def test_staged_files_listed(self, git_repo, stage):
        stage(git_repo, "src/app.py", "x = 1\n")
        stage(git_repo, "README.md", "# Changed\n")
        (git_repo / "untracked.py").write_text("y = 2\n")

        assert sorted(GitStagingArea(git_repo).list_staged()) == ["README.md", "src/app.py"]

    def test_deleted_files_excluded(self, git_repo, git):
        git(git_repo, "rm", "-q", "README.md")

        assert GitStagingArea(git_repo).list_staged() == []

    def test_staged_content_not_working_tree(self, git_repo, stage):
        path = stage(git_repo, "app.py", "staged = True\n")
        path.write_text("staged = False  # edited after git add\n")

        staging = GitStagingArea(git_repo)

        assert staging.read_staged_content("app.py") == b"staged = True\n"

    def test_capture_snapshot(self, git_repo, stage):
        stage(git_repo, "src/app.py", "print('hello')\n")
        stage(git_repo, "docs/notes.txt", "notes\n")

        snapshot = GitStagingArea(git_repo).capture_snapshot()

        by_path = {f.path: f for f in snapshot.files}
        assert set(by_path) == {"src/app.py", "docs/notes.txt"}
        assert by_path["src/app.py"].language == "python"
        assert by_path["docs/notes.txt"].language is None
        assert by_path["src/app.py"].text == "print('hello')\n"
        assert "+print('hello')" in snapshot.diff
        assert "src/app.py" in snapshot.diff

    def test_path_with_spaces(self, git_repo, stage):
        stage(git_repo, "my docs/read me.md", "hello\n")

        snapshot = GitStagingArea(git_repo).capture_snapshot()

        assert [f.path for f in snapshot.files] == ["my docs/read me.md"]

    def test_unknown_path_raises(self, git_repo):
        with pytest.raises(GitError):
            GitStagingArea(git_repo).read_staged_content("missing.py")
