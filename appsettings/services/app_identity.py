from __future__ import annotations

from dataclasses import dataclass
from importlib import metadata

from appsettings.core.errors import SettingsLocationError


@dataclass(frozen=True, slots=True)
class AppIdentity:
    """Vendor, product title and version that locate an application's settings."""

    vendor: str
    product_title: str
    version: str

    @classmethod
    def from_distribution(cls, distribution: str) -> "AppIdentity":
        """Read the identity from an installed distribution's metadata."""
        try:
            meta = metadata.metadata(distribution)
        except metadata.PackageNotFoundError as exc:
            raise SettingsLocationError(
                f"Package '{distribution}' is not installed.",
                title="Application Not Installed",
                remediation="Install the application package before starting it.",
            ) from exc

        vendor = (
            meta.get("Author")
            or _display_name(meta.get("Author-email"))
            or meta.get("Maintainer")
            or ""
        )
        title = meta.get("Name") or ""
        version = meta.get("Version") or ""
        if not (vendor and title and version):
            raise SettingsLocationError(
                f"Unable to find vendor, title or version information for '{distribution}'.",
                title="Incomplete Application Metadata",
                remediation="Declare an author, name and version in the package metadata.",
            )
        return cls(vendor=vendor, product_title=title, version=version)


def _display_name(address: str | None) -> str:
    # "Dtronix <dev@example.com>, Other <o@example.com>" -> "Dtronix"
    if not address:
        return ""
    first = address.split(",")[0]
    return first.split("<")[0].strip().strip('"')


__all__ = ["AppIdentity"]
