from importlib import resources
from pathlib import Path

import docindex

_PKG_ROOT = Path(docindex.__file__).resolve().parent


def test_code_directories_are_regular_packages():
    for d in (_PKG_ROOT / "core", _PKG_ROOT / "api"):
        for sub in [d, *[p for p in d.rglob("*") if p.is_dir() and p.name != "__pycache__"]]:
            assert (sub / "__init__.py").is_file(), sub


def test_bundled_fragments_are_reachable_as_package_data():
    root = resources.files("docindex") / "fragments"
    names = {p.name for p in (root / "implementors").iterdir()}
    assert "core_cmp_partial_eq.js" in names
    assert (root / "sidebar" / "wasmer_engine.js").is_file()
