"""Environment configuration models."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..core.constants import (
    DEFAULT_SSH_PORT,
    LANGUAGE_VERSIONS,
    MAX_SSH_PORT,
    MIN_PASSWORD_LENGTH,
    MIN_SSH_PORT,
    OS_FAMILIES,
    OS_VERSIONS,
)


class OsSelection(BaseModel):
    """Base operating system and version."""

    model_config = ConfigDict(frozen=True)

    type: str
    version: str

    @model_validator(mode="after")
    def check_supported(self) -> "OsSelection":
        if self.type not in OS_VERSIONS:
            raise ValueError(f"Unsupported OS type '{self.type}'")
        if self.version not in OS_VERSIONS[self.type]:
            supported = ", ".join(OS_VERSIONS[self.type])
            raise ValueError(
                f"Unsupported {self.type} version '{self.version}' (supported: {supported})"
            )
        return self

    @property
    def family(self) -> str:
        """Package family of this OS (debian or alpine)."""
        return OS_FAMILIES[self.type]


class LanguageRuntime(BaseModel):
    """Language runtime to install."""

    model_config = ConfigDict(frozen=True)

    name: str
    version: str

    @model_validator(mode="after")
    def check_supported(self) -> "LanguageRuntime":
        if self.name not in LANGUAGE_VERSIONS:
            raise ValueError(f"Unsupported language '{self.name}'")
        if self.version not in LANGUAGE_VERSIONS[self.name]:
            supported = ", ".join(LANGUAGE_VERSIONS[self.name])
            raise ValueError(
                f"Unsupported {self.name} version '{self.version}' (supported: {supported})"
            )
        return self


class SshAccessConfig(BaseModel):
    """SSH server settings for the container."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    port: int = DEFAULT_SSH_PORT
    password: str = ""
    public_key: Optional[str] = None

    @model_validator(mode="after")
    def check_enabled_settings(self) -> "SshAccessConfig":
        if not self.enabled:
            return self
        if not MIN_SSH_PORT <= self.port <= MAX_SSH_PORT:
            raise ValueError(
                f"SSH port must be between {MIN_SSH_PORT} and {MAX_SSH_PORT}"
            )
        if len(self.password) < MIN_PASSWORD_LENGTH:
            raise ValueError(
                f"SSH password must be at least {MIN_PASSWORD_LENGTH} characters"
            )
        return self


class EnvironmentConfig(BaseModel):
    """Complete description of a development environment.

    Instances are immutable. The ``with_*`` helpers return updated copies, so a
    change always produces a new value that callers pass back in.
    """

    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    os: OsSelection
    languages: List[LanguageRuntime] = Field(default_factory=list)
    ssh: Optional[SshAccessConfig] = None

    @field_validator("languages")
    @classmethod
    def check_unique_languages(cls, languages: List[LanguageRuntime]) -> List[LanguageRuntime]:
        seen = set()
        for language in languages:
            if language.name in seen:
                raise ValueError(f"Language '{language.name}' is listed more than once")
            seen.add(language.name)
        return languages

    @property
    def ssh_enabled(self) -> bool:
        return self.ssh is not None and self.ssh.enabled

    def with_name(self, name: Optional[str]) -> "EnvironmentConfig":
        return self._updated(name=name)

    def with_os(self, os_type: str, version: str) -> "EnvironmentConfig":
        return self._updated(os={"type": os_type, "version": version})

    def with_language(self, name: str, version: str) -> "EnvironmentConfig":
        """Add a runtime, replacing any existing entry for the same language."""
        languages = [lang.model_dump() for lang in self.languages if lang.name != name]
        languages.append({"name": name, "version": version})
        return self._updated(languages=languages)

    def without_language(self, name: str) -> "EnvironmentConfig":
        languages = [lang.model_dump() for lang in self.languages if lang.name != name]
        return self._updated(languages=languages)

    def with_ssh(self, ssh: Optional[SshAccessConfig]) -> "EnvironmentConfig":
        return self._updated(ssh=ssh.model_dump() if ssh else None)

    def _updated(self, **changes) -> "EnvironmentConfig":
        # Re-validate rather than model_copy(update=...) which skips validators
        data = self.model_dump()
        data.update(changes)
        return EnvironmentConfig.model_validate(data)

    def to_wire(self) -> Dict[str, Any]:
        """Convert to the engine wire format."""
        wire: Dict[str, Any] = {
            "name": self.name,
            "os": {"os_type": self.os.type, "version": self.os.version},
            "languages": [{"name": lang.name, "version": lang.version} for lang in self.languages],
        }
        if self.ssh is not None:
            wire["ssh"] = self.ssh.model_dump()
        return wire

    @classmethod
    def from_wire(cls, data: Dict[str, Any]) -> "EnvironmentConfig":
        """Create from the engine wire format."""
        os_data = data.get("os", {})
        return cls.model_validate({
            "name": data.get("name"),
            "os": {"type": os_data.get("os_type", ""), "version": os_data.get("version", "")},
            "languages": data.get("languages", []),
            "ssh": data.get("ssh"),
        })


class WizardSnapshot(BaseModel):
    """Persisted wizard progress."""

    current_step: int = 1
    config: EnvironmentConfig
