"""
End-to-end scenario for the macro store.
Run with: python -m pytest tests/ or just python tests/test_basic.py
"""

import sys
import tempfile
from pathlib import Path

from nvim_macros import MacroRecord, MacroStore, decode, encode, load_store, save_store


def test_greet_scenario(tmp_path=None):
    """Start with no file, add one macro, reload, remove it, reload."""
    base = Path(tmp_path) if tmp_path else Path(tempfile.mkdtemp())
    path = base / "macros.json"
    assert not path.exists()

    store = load_store(path, "none")
    assert store.list() == []

    greet = MacroRecord(name="greet", content="ihello<Esc>", raw=encode(b"ihello\x1b"))
    store.add(greet)
    save_store(path, store, "none")

    store = load_store(path, "none")
    assert store.list() == [greet]
    assert decode(store.list()[0].raw) == b"ihello\x1b"

    store.remove(0)
    save_store(path, store, "none")

    store = load_store(path, "none")
    assert store.list() == []
    assert store == MacroStore()

    print("[OK] Greet scenario passed")


if __name__ == '__main__':
    try:
        test_greet_scenario()
        print("\n" + "="*50)
        print("[SUCCESS] All tests passed!")
        print("="*50)
    except AssertionError as e:
        print(f"\n[FAIL] Test failed: {e}")
        sys.exit(1)
