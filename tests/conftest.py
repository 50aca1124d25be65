import os
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from docindex.core.observability.metrics import reset_metrics
from docindex.core.registry.environment import Environment, reset_default_environment


@pytest.fixture(scope="session", autouse=True)
def _force_test_env():
    # Make runtime behave deterministically in tests
    os.environ.setdefault("DOCINDEX_ENV", "dev")


@pytest.fixture(autouse=True)
def _clean_metrics():
    reset_metrics()
    yield
    reset_metrics()


@pytest.fixture(autouse=True)
def _restore_default_environment():
    # create_app publishes its environment as the process default
    yield
    reset_default_environment()


@pytest.fixture()
def env():
    return Environment(name="test")


@pytest.fixture()
def client():
    from docindex.api.main import app

    return TestClient(app)


@pytest.fixture()
def fragments_dir(tmp_path: Path):
    """
    Fragment tree with one file of every supported kind.
    """
    root = tmp_path / "fragments"
    (root / "implementors").mkdir(parents=True)
    (root / "sidebar").mkdir(parents=True)

    (root / "implementors" / "a_partial_eq.js").write_text(
        "(function() {var implementors = {};\n"
        'implementors["lib1"] = [{"text":"impl PartialEq for A"},{"text":"impl PartialEq for B"}];\n'
        "if (window.register_implementors) {window.register_implementors(implementors);}"
        " else {window.pending_implementors = implementors;}})()\n",
        encoding="utf-8",
    )
    (root / "implementors" / "b_extra.json").write_text(
        '{"lib1": [{"text": "impl PartialEq for C"}], "lib2": [{"text": "impl Sum for D"}]}',
        encoding="utf-8",
    )
    (root / "sidebar" / "engine.js").write_text(
        'initSidebarItems({"fn":[["run","Runs it."]],"struct":[["Engine","An engine."]]});',
        encoding="utf-8",
    )
    return root
