"""Storage location value object.

ONLY storage location - the provider name and provider-specific path of a
stored object.

Following maximum separation architecture - one file = one purpose.
"""

from dataclasses import dataclass

from ..exceptions import InvalidArgumentError


@dataclass(frozen=True)
class StorageLocation:
    """Where an object lives: ``(provider_name, path)``."""

    provider_name: str
    path: str

    def __post_init__(self):
        if not isinstance(self.provider_name, str) or not self.provider_name.strip():
            raise InvalidArgumentError("Storage provider name cannot be empty")
        if not isinstance(self.path, str) or not self.path.strip():
            raise InvalidArgumentError("Storage path cannot be empty")

        object.__setattr__(self, 'provider_name', self.provider_name.strip())
        object.__setattr__(self, 'path', self.path.strip())

    def __str__(self) -> str:
        return f"{self.provider_name}:{self.path}"
