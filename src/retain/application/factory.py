"""
Service Factory
Centralizes wiring of repository, catalog and service from configuration.
"""

from retain.application.config import AppConfig
from retain.application.progress.service import ProgressService
from retain.domain.progress.ports import ContentCatalog, ProgressRepository
from retain.infrastructure.adapters.catalog.yaml_catalog import YamlContentCatalog
from retain.infrastructure.adapters.progress.json_store import JsonProgressRepository


def get_progress_repository(config: AppConfig) -> ProgressRepository:
    """
    Returns the JSON file repository at config.data_path.
    """
    return JsonProgressRepository(config.data_path)


def get_content_catalog(config: AppConfig) -> ContentCatalog | None:
    """
    Returns the YAML catalog at config.catalog_path, or None when unset.
    """
    if config.catalog_path is None:
        return None
    return YamlContentCatalog(config.catalog_path)


def get_progress_service(config: AppConfig) -> ProgressService:
    return ProgressService(
        repository=get_progress_repository(config),
        catalog=get_content_catalog(config),
        weak_area_threshold=config.weak_area_threshold,
    )
