"""pac — a package manager for Vim/Neovim plugins built on native packages."""

__version__ = "0.4.0"
