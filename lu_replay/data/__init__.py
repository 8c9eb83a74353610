from .catalog import ComponentCatalog
from .session import SessionSchemaCache, ObjectSchema
from .router import PacketClassifier, Category, TagRule, classify

__all__ = [
    "ComponentCatalog", "SessionSchemaCache", "ObjectSchema",
    "PacketClassifier", "Category", "TagRule", "classify",
]
