import subprocess

from boxci.git_facts import git
from boxci.model import Trigger


def fake_git(answers):
    def _git(args, cwd=None):
        key = " ".join(args)
        if key not in answers:
            raise subprocess.CalledProcessError(128, ["git", *args])
        return answers[key]
    return _git


def test_trigger_from_git(monkeypatch):
    monkeypatch.setattr(git, "_git", fake_git({
        "rev-parse HEAD": "a" * 40,
        "rev-parse --abbrev-ref HEAD": "feature/x",
    }))

    assert git.trigger_from_git(event="push") == Trigger(event="push", ref="feature/x", commit="a" * 40)
    assert git.trigger_from_git(event="merge_request", ref="main").ref == "main"


def test_trigger_outside_a_repository(monkeypatch):
    monkeypatch.setattr(git, "_git", fake_git({}))

    trigger = git.trigger_from_git()
    assert trigger == Trigger(event="manual", ref="HEAD", commit=None)
    assert trigger.to_env() == {"BOXCI_EVENT": "manual", "BOXCI_REF": "HEAD"}


def test_repo_name(monkeypatch, tmp_path):
    monkeypatch.setattr(git, "_git", fake_git({"remote get-url origin": "git@example.com:team/cardgame.git"}))
    assert git.repo_name() == "cardgame"

    monkeypatch.setattr(git, "_git", fake_git({}))
    assert git.repo_name(cwd=str(tmp_path)) == tmp_path.name
