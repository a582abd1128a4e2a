"""Discovery utility for Temporal workflows and activities."""

import importlib
import pkgutil

from lextrust.utils.logging import get_logger

LOGGER = get_logger(__name__)

COMPONENT_PACKAGES = (
    "lextrust.temporal.activities",
    "lextrust.temporal.workflows",
)


def discover_package(package_name: str) -> int:
    """Import every module below ``package_name`` so their decorators register.

    Returns:
        Number of modules imported.
    """
    package = importlib.import_module(package_name)
    package_path = getattr(package, "__path__", None)
    if not package_path:
        LOGGER.warning(f"Could not determine path for package: {package_name}")
        return 0

    imported = 0
    for _, module_name, _ in pkgutil.walk_packages(package_path, f"{package_name}."):
        importlib.import_module(module_name)
        LOGGER.debug(f"Imported Temporal component module: {module_name}")
        imported += 1
    return imported


def discover_all() -> None:
    """Discover all Temporal components."""
    for package_name in COMPONENT_PACKAGES:
        discover_package(package_name)
    LOGGER.info("All Temporal workflows and activities discovered and registered successfully")
