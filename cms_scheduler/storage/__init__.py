from .base import EntityStorage, coerce_entity_id
from .content import ContentStorage
from .media import MediaStorage

__all__ = ["EntityStorage", "ContentStorage", "MediaStorage", "coerce_entity_id"]
