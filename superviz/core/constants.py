"""
Project constants definitions
"""

# ============================================================
# Default Values
# ============================================================

DEFAULT_SSH_PORT = 22
DEFAULT_SSH_TIMEOUT = 30
DEFAULT_INSTALL_TIMEOUT = 300
DEFAULT_KEEPALIVE = 30

# ============================================================
# SSH Config
# ============================================================

KNOWN_HOSTS_PATH = "~/.ssh/known_hosts"
SSH_DIR_MODE = 0o700
KNOWN_HOSTS_MODE = 0o644

# ============================================================
# Rate Limiting
# ============================================================

DEFAULT_RATE_LIMIT_ATTEMPTS = 5
DEFAULT_RATE_LIMIT_WINDOW = 60.0

# ============================================================
# Distributions
# ============================================================

UNKNOWN_DISTRO = "unknown"
OS_RELEASE_PATH = "/etc/os-release"

# ============================================================
# Repository
# ============================================================

REPOSITORY_URL = "https://repo.superviz.io"
PACKAGE_NAME = "superviz"
GPG_KEY_ID = "A1B2C3D4E5F6789A"

# ============================================================
# Configuration
# ============================================================

ENV_PREFIX = "SVZ_"
DEFAULT_CONFIG_PATH = "~/.config/superviz/config.toml"
