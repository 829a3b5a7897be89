import os
from pathlib import Path

ENV_FILE_VAR = "TRIPSEARCH_ENV_FILE"

# Checked in order inside <project root>/config
ENV_FILE_CANDIDATES = (".env.dev", ".env")

_ROOT_MARKERS = ("pyproject.toml", ".git")


def project_root() -> Path:
    """Nearest ancestor of this package holding pyproject.toml or .git.

    Falls back to the directory above the package, which is the checkout
    root in a source install.
    """
    package_dir = Path(__file__).resolve().parent
    for candidate in package_dir.parents:
        if any((candidate / marker).exists() for marker in _ROOT_MARKERS):
            return candidate
    return package_dir.parents[1]


def resolve_env_file_path() -> Path | None:
    """Resolve the .env file to load, or None to rely on the environment.

    Priority:
    1. TRIPSEARCH_ENV_FILE (absolute, or relative to the project root)
    2. config/.env.dev (local development)
    3. config/.env (deployment)
    """
    root = project_root()

    explicit = os.environ.get(ENV_FILE_VAR)
    if explicit:
        path = Path(explicit)
        if not path.is_absolute():
            path = root / path
        if path.is_file():
            return path

    for name in ENV_FILE_CANDIDATES:
        path = root / "config" / name
        if path.is_file():
            return path
    return None
