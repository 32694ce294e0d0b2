"""Raw model definitions, their discovery, and their translation.

Usage:
    from module_upgrade.definitions import JsonDefinitionDiscovery, translate

    for definition in JsonDefinitionDiscovery("definitions").discover("blog"):
        model = translate(definition)
"""

from module_upgrade.definitions.discovery import JsonDefinitionDiscovery, ModelDiscoveryService
from module_upgrade.definitions.models import RawFieldDefinition, RawModelDefinition
from module_upgrade.definitions.translator import ObjectModelDefinition, translate

__all__ = [
    "JsonDefinitionDiscovery",
    "ModelDiscoveryService",
    "RawFieldDefinition",
    "RawModelDefinition",
    "ObjectModelDefinition",
    "translate",
]
