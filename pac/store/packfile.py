"""YAML-backed persistence for the installed package set.

The packfile is a list of mappings::

    - name: vim-fugitive
      idname: github.com/tpope/vim-fugitive
      remote: https://github.com/tpope/vim-fugitive
      category: default
      opt: false
      tag: v3.7          # or branch: / commit:
      for: [python]
      on: Git
      build: make
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

import yaml

from pac.errors import FormatError, PackfileLoadError, PackfileSaveError
from pac.models.package import DEFAULT_CATEGORY, Package
from pac.models.reference import Reference


class PackfileStore:
    """Load and save the package set kept in ``packfile.yaml``."""

    def __init__(self, path: str | Path, base_dir: str | Path):
        self.path = Path(path)
        self.base_dir = Path(base_dir)

    def fetch(self) -> list[Package]:
        """Return the persisted packages, or an empty list if there is no packfile."""
        if not self.path.exists():
            return []
        try:
            with open(self.path) as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise PackfileLoadError(f"{self.path}: {e}") from e

        if data is None:
            return []
        if not isinstance(data, list):
            raise PackfileLoadError(f"{self.path}: expected a list of packages")

        packages = []
        seen: set[str] = set()
        for index, entry in enumerate(data):
            try:
                package = _dict_to_package(entry, self.base_dir)
            except (KeyError, TypeError, FormatError) as e:
                raise PackfileLoadError(f"{self.path}: entry {index}: {e}") from e
            if package.idname in seen:
                raise PackfileLoadError(
                    f"{self.path}: entry {index}: duplicate idname {package.idname}"
                )
            seen.add(package.idname)
            packages.append(package)
        return packages

    def save(self, packages: list[Package]) -> None:
        """Overwrite the packfile through a temp file and an atomic rename."""
        payload = [_package_to_dict(p) for p in packages]
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            try:
                with os.fdopen(fd, "w") as f:
                    yaml.safe_dump(payload, f, default_flow_style=False, sort_keys=False)
                os.replace(tmp_name, self.path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except (OSError, yaml.YAMLError) as e:
            raise PackfileSaveError(f"{self.path}: {e}") from e


def _package_to_dict(package: Package) -> dict:
    data = {
        "name": package.name,
        "idname": package.idname,
        "remote": package.remote,
        "category": package.category,
        "opt": package.opt,
    }
    if package.reference is not None:
        data.update(package.reference.to_dict())
    if package.for_types:
        data["for"] = list(package.for_types)
    if package.load_command:
        data["on"] = package.load_command
    if package.build_command:
        data["build"] = package.build_command
    return data


def _dict_to_package(data: dict, base_dir: Path) -> Package:
    if not isinstance(data, dict):
        raise TypeError(f"expected a mapping, got {type(data).__name__}")
    opt = data.get("opt", False)
    if not isinstance(opt, bool):
        raise FormatError(f"opt must be true or false, got {opt!r}")
    for_types = data.get("for") or []
    if isinstance(for_types, str):
        for_types = [t.strip() for t in for_types.split(",") if t.strip()]
    return Package(
        name=str(data["name"]),
        idname=str(data["idname"]),
        remote=str(data.get("remote") or ""),
        reference=Reference.from_dict(data),
        category=str(data.get("category") or DEFAULT_CATEGORY),
        opt=opt,
        for_types=[str(t) for t in for_types],
        load_command=data.get("on"),
        build_command=data.get("build"),
        base_dir=base_dir,
    )
