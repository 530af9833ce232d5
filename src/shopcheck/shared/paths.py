"""Path management for shopcheck.

All local state lives under ~/.shopcheck/.
"""

from pathlib import Path

SHOPCHECK_DIR = Path.home() / ".shopcheck"

# Secret files (service keys, payment keys)
SECRETS_DIR = SHOPCHECK_DIR / "secrets"

# User-written scenario files, looked up by name
SCENARIOS_DIR = SHOPCHECK_DIR / "scenarios"
