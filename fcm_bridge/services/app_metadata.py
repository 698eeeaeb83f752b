"""
Host application metadata lookup.

Supplies the bundle identifier sent as `application` in the batchImport body,
plus name/version/build for the optional diagnostic User-Agent.
"""

import platform
from typing import Protocol

from fcm_bridge.config import Settings
from fcm_bridge.models.domain import NOT_SET, AppMetadata


class AppMetadataProvider(Protocol):
    """Read-only source of host application metadata."""

    def get_metadata(self) -> AppMetadata: ...


class StaticAppMetadataProvider:
    """Returns a fixed metadata snapshot."""

    def __init__(self, metadata: AppMetadata | None = None) -> None:
        self.metadata = metadata or AppMetadata()

    def get_metadata(self) -> AppMetadata:
        return self.metadata


class SettingsAppMetadataProvider:
    """Reads APP_BUNDLE_ID, APP_NAME, APP_VERSION and APP_BUILD from settings."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def get_metadata(self) -> AppMetadata:
        return AppMetadata(
            bundle_identifier=self.settings.app_bundle_id or NOT_SET,
            name=self.settings.app_name or NOT_SET,
            version=self.settings.app_version or NOT_SET,
            build=self.settings.app_build or NOT_SET,
        )


def build_user_agent(metadata: AppMetadata) -> str:
    """
    Build a diagnostic User-Agent string.

    Example:
        "Reporter/2.1 (45; com.example.reporter) Linux-6.1"
    """
    host = f"{platform.system()}-{platform.release()}".replace(" ", "_")
    return (
        f"{metadata.name}/{metadata.version} "
        f"({metadata.build}; {metadata.bundle_identifier}) {host}"
    )
