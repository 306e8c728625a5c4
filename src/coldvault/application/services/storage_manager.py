"""Storage manager service.

ONLY storage placement - chooses the storage provider for a payload from
its category, size and an optional caller preference.

Following maximum separation architecture - one file = one purpose.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ...config.settings import (
    ColdVaultSettings,
    PROVIDER_IDRIVE_E2,
    PROVIDER_S3_GLACIER_DEEP,
    PROVIDER_S3_GLACIER_FLEXIBLE,
    PROVIDER_S3_STANDARD,
)
from ...core.exceptions import NoProviderAvailableError
from ...core.protocols import StorageProviderProtocol
from ...core.value_objects import FileCategory, FileSize

logger = logging.getLogger(__name__)


SIZE_SMALL = "small"
SIZE_LARGE = "large"

# (category, size class) -> candidate providers in preference order
DEFAULT_PLACEMENT_TABLE: Dict[Tuple[FileCategory, str], Tuple[str, ...]] = {
    (FileCategory.PHOTO, SIZE_SMALL): (PROVIDER_S3_GLACIER_DEEP,),
    (FileCategory.PHOTO, SIZE_LARGE): (PROVIDER_S3_GLACIER_DEEP,),
    (FileCategory.VIDEO, SIZE_SMALL): (PROVIDER_S3_GLACIER_FLEXIBLE,),
    (FileCategory.VIDEO, SIZE_LARGE): (PROVIDER_S3_GLACIER_FLEXIBLE,),
    (FileCategory.MISC, SIZE_SMALL): (PROVIDER_S3_STANDARD, PROVIDER_IDRIVE_E2),
    (FileCategory.MISC, SIZE_LARGE): (PROVIDER_S3_GLACIER_FLEXIBLE,),
}


@dataclass
class StorageManagerConfig:
    """Configuration for provider selection."""

    enabled_providers: Optional[List[str]] = None  # None enables every registered provider
    default_provider: Optional[str] = PROVIDER_S3_STANDARD
    thumbnail_provider: Optional[str] = None
    provider_costs: Dict[str, float] = field(default_factory=dict)
    large_payload_threshold: int = 1024 ** 3
    placement_table: Dict[Tuple[FileCategory, str], Tuple[str, ...]] = field(
        default_factory=lambda: dict(DEFAULT_PLACEMENT_TABLE)
    )

    @classmethod
    def from_settings(cls, settings: ColdVaultSettings) -> 'StorageManagerConfig':
        return cls(
            enabled_providers=list(settings.enabled_providers),
            default_provider=settings.default_provider,
            thumbnail_provider=settings.thumbnail_provider,
            provider_costs=dict(settings.provider_costs),
            large_payload_threshold=settings.large_payload_threshold,
        )


class StorageProviderSelector:
    """Deterministic, side-effect free provider selection.

    Order of precedence:
    1. a caller preference naming an enabled, registered provider
    2. the cheapest usable candidate of the placement table entry
    3. the configured default provider
    4. the cheapest usable provider
    """

    def __init__(
        self,
        providers: Mapping[str, StorageProviderProtocol],
        config: Optional[StorageManagerConfig] = None
    ):
        self._providers: Dict[str, StorageProviderProtocol] = {
            name.lower(): provider for name, provider in providers.items()
        }
        self._config = config or StorageManagerConfig()
        enabled = self._config.enabled_providers
        self._enabled = (
            set(self._providers) if enabled is None else {name.lower() for name in enabled}
        )

    @property
    def provider_names(self) -> List[str]:
        return list(self._providers)

    def get(self, name: Optional[str]) -> Optional[StorageProviderProtocol]:
        """Registered provider by name (case-insensitive), enabled or not."""
        if not name:
            return None
        return self._providers.get(name.strip().lower())

    def is_usable(self, name: Optional[str]) -> bool:
        if not name:
            return False
        key = name.strip().lower()
        return key in self._providers and key in self._enabled

    def usable_providers(self) -> List[StorageProviderProtocol]:
        return [provider for name, provider in self._providers.items() if name in self._enabled]

    def _cost(self, name: str) -> float:
        return self._config.provider_costs.get(name, 0.0)

    def _cheapest(self, names: Iterable[str]) -> Optional[str]:
        usable = [name for name in names if self.is_usable(name)]
        if not usable:
            return None
        # min() keeps the first of equal-cost names
        return min(usable, key=self._cost)

    def size_class(self, size: FileSize) -> str:
        return SIZE_LARGE if size.value >= self._config.large_payload_threshold else SIZE_SMALL

    def select_provider(
        self,
        category: FileCategory,
        size: FileSize,
        preference: Optional[str] = None
    ) -> StorageProviderProtocol:
        """Select the provider for a payload.

        Raises:
            NoProviderAvailableError: No enabled provider is registered
        """
        if preference:
            if self.is_usable(preference):
                return self._providers[preference.strip().lower()]
            logger.warning(
                f"Preferred storage provider '{preference}' is not available, using default placement"
            )

        size_class = self.size_class(size)
        candidates: Sequence[str] = self._config.placement_table.get((category, size_class), ())
        name = self._cheapest(candidates)
        if name:
            return self._providers[name]

        default = self._config.default_provider
        if self.is_usable(default):
            logger.info(
                f"No placement candidate usable for {category.value}/{size_class}, "
                f"falling back to default provider {default}"
            )
            return self._providers[default.strip().lower()]

        name = self._cheapest(self._providers)
        if name:
            logger.info(f"Falling back to cheapest usable provider {name}")
            return self._providers[name]

        raise NoProviderAvailableError(
            f"No storage provider available for {category.value} payload of {size}",
            details={"category": category.value, "size_bytes": size.value},
        )

    def instant_access_provider(self, preference: Optional[str] = None) -> Optional[StorageProviderProtocol]:
        """Provider used for thumbnails and other instantly readable content."""
        for name in (preference, self._config.thumbnail_provider):
            if self.is_usable(name):
                provider = self._providers[name.strip().lower()]
                if provider.capabilities.supports_instant_access:
                    return provider

        instant = [
            name for name, provider in self._providers.items()
            if provider.capabilities.supports_instant_access
        ]
        name = self._cheapest(instant)
        return self._providers[name] if name else None


def create_storage_provider_selector(
    providers: Mapping[str, StorageProviderProtocol],
    config: Optional[StorageManagerConfig] = None
) -> StorageProviderSelector:
    """Create storage provider selector service."""
    return StorageProviderSelector(providers, config)
