import subprocess
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]


@pytest.mark.parametrize(
    "module",
    [
        "runtime_config.models",
        "runtime_config.stores",
        "runtime_config.services.runtime_config_engine",
        "runtime_config.api.factory",
        "main",
    ],
)
def test_entry_modules_import_in_a_fresh_interpreter(module):
    # each import starts from an empty module cache, so import cycles surface
    result = subprocess.run(
        [sys.executable, "-c", f"import {module}"],
        cwd=ROOT,
        capture_output=True,
        text=True,
        timeout=60,
    )
    assert result.returncode == 0, result.stderr
