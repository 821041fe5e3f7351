from __future__ import annotations

import os
import tempfile

# Keep settings, logs and session files out of the user's home during tests.
_TMP_HOME = tempfile.mkdtemp(prefix="siga-tests-")
os.environ.setdefault("SIGA_CONFIG_DIR", _TMP_HOME)
os.environ.setdefault("SIGA_LOG_DIR", os.path.join(_TMP_HOME, "logs"))
