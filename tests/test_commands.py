"""Tests for the install/update/uninstall/move/list commands."""

from types import SimpleNamespace

import pytest
import yaml
from git import Repo

from gitutil import commit_files, make_origin
from pac.commands.install import build_targets, install_plugins
from pac.commands.listing import detached_dirs, list_packages
from pac.commands.move import move_plugin
from pac.commands.uninstall import uninstall_plugins
from pac.commands.update import select_packages, update_plugins
from pac.commands.common import open_store
from pac.errors import (
    GitSyncError,
    NoPluginError,
    PathCollisionError,
    PluginNotInstalledError,
)
from pac.models.package import Package
from pac.utils import git_ops


@pytest.fixture
def fake_git(monkeypatch):
    """Replace network git with directory creation."""
    calls = {"clone": [], "pull": []}

    def clone(remote, path, reference=None, timeout=None):
        calls["clone"].append(remote)
        if "broken" in remote:
            raise GitSyncError(f"could not read from {remote}")
        path.mkdir(parents=True)
        return SimpleNamespace(hexsha="a" * 40)

    def pull(remote, path, reference=None, timeout=None):
        calls["pull"].append(remote)
        if "flaky" in remote:
            raise GitSyncError("connection reset")
        return SimpleNamespace(hexsha="b" * 40)

    monkeypatch.setattr(git_ops, "clone", clone)
    monkeypatch.setattr(git_ops, "pull", pull)
    return calls


def _packfile(settings):
    with open(settings.packfile) as f:
        return yaml.safe_load(f)


# --- Install Tests ---


def test_build_targets(settings):
    targets = build_targets(
        ["tpope/vim-fugitive", "https://gitlab.com/a/b.git"],
        settings,
        category="git",
        for_types=["gitcommit"],
    )
    assert [t.idname for t in targets] == ["github.com/tpope/vim-fugitive", "gitlab.com/a/b"]
    assert [t.name for t in targets] == ["vim-fugitive", "b"]
    assert all(t.opt and t.category == "git" for t in targets)
    assert targets[0].base_dir == settings.pack_dir


def test_build_targets_as_requires_single_package(settings):
    with pytest.raises(ValueError):
        build_targets(["a/b", "c/d"], settings, name="x")


def test_install_records_packages(settings, fake_git):
    targets = build_targets(["tpope/vim-surround", "owner/broken"], settings)
    result = install_plugins(settings, targets, threads=2)

    assert result.failed == {"github.com/owner/broken"}
    assert result.kept == ["github.com/tpope/vim-surround"]
    assert [e["idname"] for e in _packfile(settings)] == ["github.com/tpope/vim-surround"]
    assert (settings.pack_dir / "default" / "start" / "vim-surround").is_dir()
    assert settings.loader_file.exists()


def test_install_is_idempotent(settings, fake_git):
    targets = build_targets(["tpope/vim-surround", "junegunn/fzf"], settings)
    install_plugins(settings, targets, threads=2)
    first = _packfile(settings)

    result = install_plugins(settings, targets, threads=2)
    assert result.failed == set()
    assert all(o.keep and o.error is not None for o in result.outcomes)
    assert _packfile(settings) == first
    assert len(fake_git["clone"]) == 2


def test_install_keeps_installed_placement(settings, fake_git):
    install_plugins(settings, build_targets(["a/tools"], settings), threads=1)
    install_plugins(settings, build_targets(["a/tools"], settings, category="x", opt=True), threads=1)

    (entry,) = _packfile(settings)
    assert entry["category"] == "default"
    assert entry["opt"] is False


def test_install_without_targets_installs_packfile(settings, fake_git):
    install_plugins(settings, build_targets(["a/one", "a/two"], settings), threads=2)
    for path in settings.pack_dir.glob("default/start/*"):
        path.rmdir()

    result = install_plugins(settings, [], threads=2)
    assert sorted(fake_git["clone"][2:]) == ["https://github.com/a/one", "https://github.com/a/two"]
    assert result.kept == ["github.com/a/one", "github.com/a/two"]


def test_install_rejects_path_collision(settings, fake_git):
    install_plugins(settings, build_targets(["one/tools"], settings), threads=1)
    with pytest.raises(PathCollisionError):
        install_plugins(settings, build_targets(["two/tools"], settings), threads=1)
    assert len(fake_git["clone"]) == 1


def test_install_build_failure_removes_clone(settings, fake_git):
    targets = build_targets(["a/needs-build"], settings, build_command="exit 3")
    result = install_plugins(settings, targets, threads=1)

    assert result.failed == {"github.com/a/needs-build"}
    assert not (settings.pack_dir / "default" / "start" / "needs-build").exists()
    assert _packfile(settings) == []


def test_install_from_local_origin(settings, tmp_path):
    origin = make_origin(tmp_path / "src" / "vim-local", {"plugin/local.vim": "\" hi\n"})
    targets = build_targets([origin.working_tree_dir], settings, build_command="touch built")
    result = install_plugins(settings, targets, threads=1)

    assert result.failed == set()
    path = settings.pack_dir / "default" / "start" / "vim-local"
    assert (path / "plugin" / "local.vim").read_text() == "\" hi\n"
    assert (path / "built").exists()
    assert Repo(path).head.commit == origin.head.commit


# --- Update Tests ---


def _seed(settings, count=10):
    packages = [
        Package.from_remote(f"https://github.com/owner/plugin{i:02d}", base_dir=settings.pack_dir)
        for i in range(count)
    ]
    open_store(settings).save(packages)
    return packages


def test_update_drops_not_installed(settings, fake_git):
    packages = _seed(settings)
    missing = {packages[2].idname, packages[5].idname, packages[9].idname}
    for pack in packages:
        if pack.idname not in missing:
            pack.path().mkdir(parents=True)

    result = update_plugins(settings, [], threads=4)

    assert result.failed == missing
    idnames = [e["idname"] for e in _packfile(settings)]
    assert len(idnames) == 7
    assert idnames == sorted(idnames)
    assert not missing & set(idnames)


def test_update_keeps_sync_failures_and_local(settings, fake_git):
    base = settings.pack_dir
    packages = [
        Package.from_remote("https://github.com/owner/flaky", base_dir=base),
        Package(name="mine", idname="local/mine", base_dir=base),
    ]
    open_store(settings).save(packages)
    for pack in packages:
        pack.path().mkdir(parents=True)

    result = update_plugins(settings, [], threads=2)

    assert result.failed == set()
    assert sorted(result.kept) == ["github.com/owner/flaky", "local/mine"]
    assert sum(o.skipped for o in result.outcomes) == 1


def test_update_named_and_skip(settings, fake_git):
    packages = _seed(settings, 3)
    for pack in packages:
        pack.path().mkdir(parents=True)

    result = update_plugins(settings, ["owner/plugin01", "nothing-here"], threads=2)
    assert fake_git["pull"] == ["https://github.com/owner/plugin01"]
    assert result.missing == ["nothing-here"]
    assert len(result.packages) == 3

    fake_git["pull"].clear()
    result = update_plugins(settings, [], threads=2, skip=["plugin00"])
    assert result.skipped == ["github.com/owner/plugin00"]
    assert sorted(fake_git["pull"]) == [
        "https://github.com/owner/plugin01",
        "https://github.com/owner/plugin02",
    ]


def test_select_packages_unknown_only(settings):
    packages = _seed(settings, 2)
    selected, skipped, unknown = select_packages(packages, ["zzz"])
    assert selected == [] and skipped == [] and unknown == ["zzz"]


def test_update_with_only_unknown_names_runs_nothing(settings, fake_git):
    _seed(settings, 2)
    update_plugins(settings, ["zzz"], threads=1)
    assert fake_git["pull"] == []


def test_update_pulls_new_commits(settings, tmp_path):
    origin = make_origin(tmp_path / "src" / "vim-local")
    install_plugins(settings, build_targets([origin.working_tree_dir], settings), threads=1)
    newest = commit_files(origin, {"plugin/example.vim": "\" v2\n"})

    result = update_plugins(settings, [], threads=1)

    assert result.failed == set()
    path = settings.pack_dir / "default" / "start" / "vim-local"
    assert Repo(path).head.commit == newest


# --- Uninstall / Move / List Tests ---


def test_uninstall(settings, fake_git):
    install_plugins(settings, build_targets(["a/one", "a/two"], settings), threads=2)
    (one,) = [p for p in open_store(settings).fetch() if p.name == "one"]
    one.config_path().parent.mkdir(parents=True)
    one.config_path().write_text("let g:one = 1\n")

    removed = uninstall_plugins(settings, ["one"], purge=True)

    assert [p.name for p in removed] == ["one"]
    assert not one.path().exists()
    assert not one.config_path().exists()
    assert [e["name"] for e in _packfile(settings)] == ["two"]


def test_uninstall_unknown_deletes_nothing(settings, fake_git):
    install_plugins(settings, build_targets(["a/one"], settings), threads=1)
    with pytest.raises(PluginNotInstalledError):
        uninstall_plugins(settings, ["one", "ghost"])
    assert (settings.pack_dir / "default" / "start" / "one").is_dir()


def test_move_to_category_and_opt(settings, fake_git):
    install_plugins(settings, build_targets(["a/one"], settings), threads=1)

    moved = move_plugin(settings, "one", category="tools")
    assert moved.path() == settings.pack_dir / "tools" / "start" / "one"
    assert moved.path().is_dir()
    assert not (settings.pack_dir / "default" / "start" / "one").exists()

    moved = move_plugin(settings, "one", opt=True)
    assert moved.path() == settings.pack_dir / "tools" / "opt" / "one"
    (entry,) = _packfile(settings)
    assert (entry["category"], entry["opt"]) == ("tools", True)


def test_move_unknown(settings):
    with pytest.raises(NoPluginError):
        move_plugin(settings, "ghost", category="x")


def test_list_filters_and_detached(settings, fake_git):
    install_plugins(settings, build_targets(["a/one"], settings), threads=1)
    install_plugins(settings, build_targets(["a/two"], settings, opt=True, category="x"), threads=1)
    stray = settings.pack_dir / "default" / "start" / "stray"
    stray.mkdir(parents=True)

    assert [p.name for p in list_packages(settings)] == ["one", "two"]
    assert [p.name for p in list_packages(settings, opt=True)] == ["two"]
    assert [p.name for p in list_packages(settings, start=True)] == ["one"]
    assert [p.name for p in list_packages(settings, category="x")] == ["two"]
    assert detached_dirs(settings) == [stray]
