from .bundle import EntityBundle
from .content import Content, ContentFieldRevision, ContentRevision
from .media import Media, MediaFieldData

__all__ = [
    "EntityBundle",
    "Content",
    "ContentFieldRevision",
    "ContentRevision",
    "Media",
    "MediaFieldData",
]
