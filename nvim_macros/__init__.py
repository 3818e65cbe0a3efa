"""
nvim-macros - a persistent store for named Neovim macros.

Each macro keeps two forms of the same recorded keys:
- content: printable key notation (<Esc>, <C-r>, ...)
- raw: the exact register bytes, base64-encoded

Macros live in a single JSON file that can optionally be piped through
jq or yq for pretty-printing.
"""

__version__ = "0.3.0"
__author__ = "nvim-macros Contributors"

from nvim_macros.codec import decode, encode
from nvim_macros.errors import MacrosError
from nvim_macros.macros import MacroManager
from nvim_macros.models import MacroRecord, MacroStore
from nvim_macros.storage.json_backend import load_store, save_store

__all__ = [
    "MacroManager",
    "MacroRecord",
    "MacroStore",
    "MacrosError",
    "decode",
    "encode",
    "load_store",
    "save_store",
]
