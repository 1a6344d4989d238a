"""
Media models

Media is translatable but not revisionable: `media` holds the base row and
`media_field_data` one row per langcode.
"""

from sqlalchemy import Boolean, Column, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from cms_scheduler.database import Base


class Media(Base):
    __tablename__ = "media"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    bundle = Column(String(64), nullable=False, index=True)
    default_langcode = Column(String(12), nullable=False, default="en")

    field_data = relationship("MediaFieldData", back_populates="media", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Media(id={self.id}, bundle={self.bundle})>"


class MediaFieldData(Base):
    __tablename__ = "media_field_data"

    media_id = Column(Integer, ForeignKey("media.id", ondelete="CASCADE"), primary_key=True)
    langcode = Column(String(12), primary_key=True)
    default_langcode = Column(Boolean, nullable=False, default=True)
    title = Column(String, nullable=False)
    status = Column(Boolean, nullable=False, default=False)
    publish_on = Column(Integer, nullable=True)
    unpublish_on = Column(Integer, nullable=True)
    created = Column(Integer, nullable=False)
    changed = Column(Integer, nullable=False)

    media = relationship("Media", back_populates="field_data")

    __table_args__ = (
        Index("idx_mfd_publish_on", "publish_on"),
        Index("idx_mfd_unpublish_on", "unpublish_on"),
    )
