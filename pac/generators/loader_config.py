"""Loader generator: produces the ``_pac.vim`` file the editor sources at startup.

Opt packages are wired to load lazily, either on a filetype or on first use
of a command; every package's own config file is appended after that.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

from pac.errors import ConfigGenerationError
from pac.models.package import Package

HEADER = '" Generated by pac. Do not edit, run `pac generate` instead.'
AUGROUP = "pac_filetype"


def render_loader(packages: list[Package]) -> str:
    """Build the loader script for *packages* (sorted by idname)."""
    packages = sorted(packages, key=lambda p: p.idname)
    lines = [HEADER, ""]

    typed = [p for p in packages if p.opt and p.for_types]
    if typed:
        lines.append(f"augroup {AUGROUP}")
        lines.append("  autocmd!")
        for p in typed:
            lines.append(f"  autocmd FileType {','.join(p.for_types)} ++once packadd {p.name}")
        lines.append("augroup END")
        lines.append("")

    for p in packages:
        if p.opt and p.load_command:
            lines.append(_command_stub(p.load_command, p.name))
    if any(p.opt and p.load_command for p in packages):
        lines.append("")

    for p in packages:
        config = p.config_path()
        if not config.is_file():
            continue
        lines.append(f'" {p.idname}')
        lines.append(config.read_text().rstrip("\n"))
        lines.append("")

    return "\n".join(lines).rstrip("\n") + "\n"


def update_loader_config(packages: list[Package], loader_file: str | Path) -> Path:
    """Regenerate *loader_file* atomically.

    Raises:
        ConfigGenerationError: If reading a config file or writing the loader fails.
    """
    path = Path(loader_file)
    try:
        content = render_loader(packages)
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
        try:
            with os.fdopen(fd, "w") as f:
                f.write(content)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
    except OSError as e:
        raise ConfigGenerationError(f"{path}: {e}") from e
    return path


def _command_stub(command: str, name: str) -> str:
    # The stub removes itself, loads the plugin, then replays the invocation
    # against the plugin's real command.
    return (
        f"command! -nargs=* -bang {command} "
        f"delcommand {command} | packadd {name} | "
        f"execute '{command}<bang> ' . <q-args>"
    )
