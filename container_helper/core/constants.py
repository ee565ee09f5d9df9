"""Constants used throughout the Container Helper application."""


# Operating systems
OS_IMAGES = {
    "ubuntu": "ubuntu:{version}",
    "debian": "debian:{version}",
    "alpine": "alpine:{version}",
}
OS_VERSIONS = {
    "ubuntu": ["20.04", "22.04", "24.04"],
    "debian": ["bullseye", "bookworm"],
    "alpine": ["latest"],
}
# Package family per OS type
OS_FAMILIES = {
    "ubuntu": "debian",
    "debian": "debian",
    "alpine": "alpine",
}
PACKAGE_FAMILIES = ("debian", "alpine")
DEFAULT_BASE_IMAGE = "ubuntu:22.04"
DEFAULT_FAMILY = "debian"

# Language runtimes
LANGUAGE_VERSIONS = {
    "python": ["3.9", "3.10", "3.11", "3.12"],
    "nodejs": ["18", "20", "22"],
    "rust": ["stable", "nightly"],
}

# Dockerfile
DEFAULT_WORKDIR = "/app"
SHELL_COMMAND = 'CMD ["/bin/bash"]'
SSHD_COMMAND = 'CMD ["/usr/sbin/sshd", "-D"]'

# SSH
SSH_CONTAINER_PORT = 22
DEFAULT_SSH_PORT = 2222
MIN_SSH_PORT = 1024
MAX_SSH_PORT = 65535
MIN_PASSWORD_LENGTH = 6

# Image tags
TAG_SUFFIX = ":latest"
FALLBACK_TAG = "dev-environment"

# Timing values (seconds)
POLL_INTERVAL = 5.0
PORT_CHECK_DEBOUNCE = 0.5

# Presentation
CONTAINER_ID_PREFIX_LENGTH = 12

# Local state
DATA_DIR_NAME = ".container-helper"
STATE_FILE_NAME = "wizard_state.json"
