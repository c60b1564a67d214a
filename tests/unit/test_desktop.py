"""Desktop packaging: nativefier invocation and artifact placement per OS."""
from __future__ import annotations

from pathlib import Path

import pytest

from chatstack import desktop, utility
from chatstack.settings import InstallConfig


@pytest.mark.parametrize(
    "os_name,expected",
    [
        ("darwin", Path("/Applications/Local LLM Chat.app")),
        ("linux", Path("/usr/local/bin/Local-LLM-Chat.AppImage")),
    ],
)
def test_artifact_locations(os_name, expected) -> None:
    assert desktop.artifact_path(InstallConfig(), os_name) == expected


def test_windows_artifact_under_program_files(monkeypatch) -> None:
    monkeypatch.setenv("ProgramFiles", "C:/Program Files")
    assert desktop.artifact_path(InstallConfig(), "windows") == Path("C:/Program Files/Local LLM Chat")


def test_nativefier_command(linux, tmp_path) -> None:
    cmd = desktop.nativefier_command(InstallConfig(), tmp_path, "linux")
    assert cmd[:2] == ["nativefier", "http://localhost:3000"]
    assert cmd[cmd.index("--name") + 1] == "Local LLM Chat"
    assert cmd[cmd.index("--platform") + 1] == "linux"
    assert cmd[cmd.index("--arch") + 1] == "x64"
    assert "--single-instance" in cmd and "--tray" in cmd
    assert cmd[-1] == str(tmp_path)


def test_recent_node_is_left_alone(host, monkeypatch) -> None:
    monkeypatch.setattr(utility, "node_major_version", lambda: 20)
    desktop.ensure_node("linux")
    assert host.calls == []


def test_old_node_upgraded_on_macos(host, monkeypatch) -> None:
    versions = iter([16, 20])
    monkeypatch.setattr(utility, "node_major_version", lambda: next(versions))
    desktop.ensure_node("darwin")
    assert host.ran("brew", "install", "node@20")


def test_linux_node_without_package_manager_raises(host, monkeypatch) -> None:
    monkeypatch.setattr(utility, "node_major_version", lambda: 0)
    with pytest.raises(RuntimeError):
        desktop.ensure_node("linux")


def test_linux_appimage_moved_to_bin(host, linux, tmp_path) -> None:
    image = tmp_path / "Local LLM Chat-linux-x64" / "Local LLM Chat.AppImage"
    image.parent.mkdir()
    image.write_text("")
    dest = desktop.place_linux_app(tmp_path, InstallConfig())
    assert dest == Path("/usr/local/bin/Local-LLM-Chat.AppImage")
    assert ["mv", str(image), str(dest)] in host.calls


def make_bundle(root, files):
    bundle = root / "Local LLM Chat-linux-x64"
    bundle.mkdir()
    for name, mode in files.items():
        path = bundle / name
        path.write_text("")
        path.chmod(mode)
    return bundle


def test_linux_bundle_links_its_real_launcher(host, linux, tmp_path) -> None:
    bundle = make_bundle(tmp_path, {
        "chrome-sandbox": 0o755,
        "libffmpeg.so": 0o755,
        "resources.pak": 0o644,
        "localllmchat": 0o755,
    })
    dest = desktop.place_linux_app(tmp_path, InstallConfig())
    assert host.ran("mv", str(bundle), "/usr/local/lib/Local-LLM-Chat")
    assert host.ran("ln", "-sf", "/usr/local/lib/Local-LLM-Chat/localllmchat", str(dest))


def test_bundle_without_launcher_is_not_linked(host, linux, tmp_path) -> None:
    make_bundle(tmp_path, {"chrome-sandbox": 0o755, "resources.pak": 0o644})
    with pytest.raises(FileNotFoundError):
        desktop.place_linux_app(tmp_path, InstallConfig())
    assert not host.ran("ln")
    assert not host.ran("mv")


def test_macos_bundle_replaces_existing_app(host, tmp_path) -> None:
    (tmp_path / "out" / "Local LLM Chat.app").mkdir(parents=True)
    dest = desktop.place_macos_app(tmp_path, InstallConfig())
    assert dest == Path("/Applications/Local LLM Chat.app")
    assert host.calls.index(["rm", "-rf", str(dest)]) < host.calls.index(
        ["mv", str(tmp_path / "out" / "Local LLM Chat.app"), str(dest)]
    )


def test_missing_bundle_raises(host, tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        desktop.place_macos_app(tmp_path, InstallConfig())


def test_build_app_unsupported_os(host) -> None:
    assert desktop.build_app(InstallConfig(), "sunos") is None
    assert host.calls == []


def test_build_app_runs_nativefier_and_places(host, linux, monkeypatch) -> None:
    monkeypatch.setattr(utility, "node_major_version", lambda: 20)
    placed = []

    def fake_place(build_dir, config):
        placed.append(build_dir)
        return Path("/usr/local/bin/Local-LLM-Chat.AppImage")

    monkeypatch.setitem(desktop.ARTIFACT_PLACERS, "linux", fake_place)
    result = desktop.build_app(InstallConfig())
    assert result == Path("/usr/local/bin/Local-LLM-Chat.AppImage")
    assert host.ran("npm", "install", "-g", "nativefier")
    assert host.ran("nativefier", "http://localhost:3000")
    assert not placed[0].exists()


def test_build_app_failure_returns_none(host, linux, monkeypatch) -> None:
    monkeypatch.setattr(utility, "node_major_version", lambda: 20)
    host.fail("nativefier")
    assert desktop.build_app(InstallConfig()) is None
