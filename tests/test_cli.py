import re

import pytest

from conftest import clear_env
from pinvault.vaultfs import main


@pytest.fixture
def run(monkeypatch, tmp_path, capsys):
    clear_env(monkeypatch, tmp_path)
    monkeypatch.setenv("PINVAULT_HOME", str(tmp_path / "home"))
    monkeypatch.setenv("PINVAULT_KDF_T", "1")
    monkeypatch.setenv("PINVAULT_KDF_M", "8")

    def _run(*argv):
        main(list(argv))
        return capsys.readouterr()

    return _run


def created_id(out: str) -> str:
    return re.search(r"id=(\S+)", out).group(1)


def test_file_lifecycle_through_cli(run):
    fid = created_id(run("--key", "k", "new", "notes", "--content", "hello").out)
    assert run("--key", "k", "cat", fid).out == "hello"

    run("--key", "k", "edit", fid, "changed")
    run("--key", "k", "mv", fid, "renamed")
    listing = run("--key", "k", "ls").out
    assert fid in listing and "renamed" in listing

    run("--key", "k", "rm", fid)
    assert run("--key", "k", "ls").out.strip() == "(empty)"


def test_login_session_supplies_the_secret(run):
    assert "Logged in" in run("login", "session-key").out
    fid = created_id(run("new", "a").out)
    assert fid in run("--key", "session-key", "ls").out
    run("logout")
    with pytest.raises(SystemExit):
        run("ls")


def test_errors_exit_with_status_one(run):
    run("--key", "k", "new", "dup")
    with pytest.raises(SystemExit) as exc:
        run("--key", "k", "new", "dup")
    assert exc.value.code == 1
    assert "'dup (1)'" in run("--key", "k", "new", "dup", "--auto-suffix").out
    assert "dup (1)" in run("--key", "k", "ls").out


def test_remote_commands_need_configuration(run, capsys):
    with pytest.raises(SystemExit):
        run("--key", "k", "sync")
    assert "[!]" in capsys.readouterr().err


def test_fsck_and_keygen(run):
    run("--key", "k", "new", "a")
    assert "lockstep" in run("--key", "k", "fsck").out
    out = run("keygen").out
    assert re.search(r"private\t[0-9a-f]{64}", out)
    assert re.search(r"public\t[0-9a-f]{64}", out)
