"""Root conftest: test against the working tree, not an installed scopecov."""

import sys
from pathlib import Path

_SRC = Path(__file__).resolve().parent.parent / "src"
if str(_SRC) not in sys.path:
    sys.path.insert(0, str(_SRC))

for _name in [m for m in sys.modules if m == "scopecov" or m.startswith("scopecov.")]:
    del sys.modules[_name]
