"""Dockerfile generation from an environment configuration.

The compiler is a pure function of the configuration: equal configurations
always produce identical documents. Installer snippets live in lookup tables
keyed by ``(language, package family)`` and by package family for SSH. Both
tables are checked for completeness when this module is imported.
"""

import logging
import shlex
from dataclasses import dataclass
from typing import Callable, Dict, List, Tuple

from ..services.exceptions import ConfigValidationError
from .constants import (
    DEFAULT_BASE_IMAGE,
    DEFAULT_FAMILY,
    DEFAULT_WORKDIR,
    LANGUAGE_VERSIONS,
    OS_FAMILIES,
    OS_IMAGES,
    PACKAGE_FAMILIES,
    SHELL_COMMAND,
    SSHD_COMMAND,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InstructionDocument:
    """Ordered Dockerfile lines."""

    lines: Tuple[str, ...]

    @property
    def text(self) -> str:
        return "\n".join(self.lines) + "\n"

    def __str__(self) -> str:
        return self.text


# Package manager commands per family
UPDATE = {"debian": "apt-get update", "alpine": "apk update"}
INSTALL = {"debian": "apt-get install -y", "alpine": "apk add"}
CACHE_DIR = {"debian": "/var/lib/apt/lists/*", "alpine": "/var/cache/apk/*"}


def _python_debian(version: str) -> List[str]:
    return [
        f"RUN {UPDATE['debian']} && \\",
        f"    {INSTALL['debian']} software-properties-common && \\",
        "    add-apt-repository ppa:deadsnakes/ppa -y && \\",
        f"    {UPDATE['debian']} && \\",
        f"    {INSTALL['debian']} python{version} python{version}-pip && \\",
        f"    rm -rf {CACHE_DIR['debian']}",
    ]


def _python_alpine(version: str) -> List[str]:
    # Alpine ships a single python3 package
    return [
        f"RUN {UPDATE['alpine']} && \\",
        f"    {INSTALL['alpine']} python3 py3-pip && \\",
        f"    rm -rf {CACHE_DIR['alpine']}",
    ]


def _nodejs_debian(version: str) -> List[str]:
    return [
        f"RUN {UPDATE['debian']} && \\",
        f"    {INSTALL['debian']} curl && \\",
        f"    curl -fsSL https://deb.nodesource.com/setup_{version}.x -o nodesource_setup.sh && \\",
        "    bash nodesource_setup.sh && \\",
        f"    {INSTALL['debian']} nodejs && \\",
        "    rm nodesource_setup.sh && \\",
        f"    rm -rf {CACHE_DIR['debian']}",
    ]


def _nodejs_alpine(version: str) -> List[str]:
    return [
        f"RUN {UPDATE['alpine']} && \\",
        f"    {INSTALL['alpine']} nodejs npm && \\",
        f"    rm -rf {CACHE_DIR['alpine']}",
    ]


def _rust(family: str, build_tools: str) -> Callable[[str], List[str]]:
    def install(version: str) -> List[str]:
        toolchain = " --default-toolchain nightly" if version == "nightly" else ""
        return [
            f"RUN {UPDATE[family]} && \\",
            f"    {INSTALL[family]} {build_tools} && \\",
            "    curl --proto '=https' --tlsv1.2 -sSf https://sh.rustup.rs -o rustup-init.sh && \\",
            f"    sh rustup-init.sh -y{toolchain} && \\",
            "    rm rustup-init.sh && \\",
            f"    rm -rf {CACHE_DIR[family]}",
            'ENV PATH="/root/.cargo/bin:${PATH}"',
        ]
    return install


INSTALLERS: Dict[Tuple[str, str], Callable[[str], List[str]]] = {
    ("python", "debian"): _python_debian,
    ("python", "alpine"): _python_alpine,
    ("nodejs", "debian"): _nodejs_debian,
    ("nodejs", "alpine"): _nodejs_alpine,
    ("rust", "debian"): _rust("debian", "curl build-essential"),
    ("rust", "alpine"): _rust("alpine", "curl gcc musl-dev"),
}


def _ssh_debian(password: str) -> List[str]:
    return [
        f"RUN {UPDATE['debian']} && \\",
        f"    DEBIAN_FRONTEND=noninteractive {INSTALL['debian']} openssh-server && \\",
        "    mkdir -p /var/run/sshd && \\",
        f"    echo {shlex.quote('root:' + password)} | chpasswd && \\",
        '    sed -i "s/#\\?PermitRootLogin.*/PermitRootLogin yes/" /etc/ssh/sshd_config && \\',
        '    sed -i "s/#\\?PasswordAuthentication.*/PasswordAuthentication yes/" /etc/ssh/sshd_config && \\',
        f"    rm -rf {CACHE_DIR['debian']}",
    ]


def _ssh_alpine(password: str) -> List[str]:
    return [
        f"RUN {UPDATE['alpine']} && \\",
        f"    {INSTALL['alpine']} openssh && \\",
        "    ssh-keygen -A && \\",
        f"    echo {shlex.quote('root:' + password)} | chpasswd && \\",
        '    sed -i "s/#PermitRootLogin.*/PermitRootLogin yes/" /etc/ssh/sshd_config && \\',
        '    sed -i "s/#PasswordAuthentication.*/PasswordAuthentication yes/" /etc/ssh/sshd_config && \\',
        "    mkdir -p /run/sshd && \\",
        f"    rm -rf {CACHE_DIR['alpine']}",
    ]


SSH_INSTALLERS: Dict[str, Callable[[str], List[str]]] = {
    "debian": _ssh_debian,
    "alpine": _ssh_alpine,
}


def _check_tables() -> None:
    missing = [
        (language, family)
        for language in LANGUAGE_VERSIONS
        for family in PACKAGE_FAMILIES
        if (language, family) not in INSTALLERS
    ]
    missing += [(None, family) for family in PACKAGE_FAMILIES if family not in SSH_INSTALLERS]
    if missing:
        raise RuntimeError(f"Installer table is missing entries: {missing}")


_check_tables()


def resolve_base_image(os_type: str, version: str) -> Tuple[str, str]:
    """Return the base image and package family for an OS selection."""
    if os_type not in OS_IMAGES:
        logger.warning(f"Unknown OS type '{os_type}', falling back to {DEFAULT_BASE_IMAGE}")
        return DEFAULT_BASE_IMAGE, DEFAULT_FAMILY
    return OS_IMAGES[os_type].format(version=version), OS_FAMILIES[os_type]


def compile_dockerfile(config) -> InstructionDocument:
    """Compile an environment configuration into a Dockerfile.

    Args:
        config: EnvironmentConfig, possibly unvalidated

    Returns:
        Complete instruction document ending with the default command
    """
    base_image, family = resolve_base_image(config.os.type, config.os.version)

    lines = [f"FROM {base_image}", "", f"WORKDIR {DEFAULT_WORKDIR}", ""]

    for language in config.languages:
        installer = INSTALLERS.get((language.name, family))
        if installer is None:
            logger.warning(f"No installer for language '{language.name}', skipping")
            continue
        lines.append(f"# Install {language.name} {language.version}")
        lines.extend(installer(language.version))
        lines.append("")

    ssh = config.ssh
    ssh_enabled = ssh is not None and ssh.enabled
    if ssh_enabled:
        lines.append("# Install and configure SSH server")
        lines.extend(SSH_INSTALLERS[family](ssh.password))
        if ssh.public_key:
            lines.append("RUN mkdir -p /root/.ssh && \\")
            lines.append(f"    echo {shlex.quote(ssh.public_key.strip())} >> /root/.ssh/authorized_keys && \\")
            lines.append("    chmod 700 /root/.ssh && chmod 600 /root/.ssh/authorized_keys")
        lines.append("")
        lines.append(f"EXPOSE {ssh.port}")
        lines.append("")

    lines.append("# Set default command")
    lines.append(SSHD_COMMAND if ssh_enabled else SHELL_COMMAND)

    return InstructionDocument(tuple(lines))


def validate_for_generation(config) -> None:
    """Check that a configuration has what generation needs.

    Raises:
        ConfigValidationError: If OS type, OS version or languages are missing
    """
    if not config.os.type:
        raise ConfigValidationError("OS type is required")
    if not config.os.version:
        raise ConfigValidationError("OS version is required")
    if not config.languages:
        raise ConfigValidationError("At least one language is required")
