# Infrastructure Catalog Adapters Package
from .yaml_catalog import YamlContentCatalog

__all__ = ["YamlContentCatalog"]
