"""
Content models

Content is both revisionable and translatable:

    content                  — one row per item, points at its default revision
    content_revisions        — one row per revision (log message, creation time)
    content_field_revisions  — one row per (revision, langcode) holding the
                               translatable field values, scheduling dates included

The latest revision of an item is the one with the highest revision id. It can
be newer than the default revision when a draft update is pending.
"""

from sqlalchemy import Boolean, Column, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from cms_scheduler.database import Base


class Content(Base):
    __tablename__ = "content"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    bundle = Column(String(64), nullable=False, index=True)
    default_langcode = Column(String(12), nullable=False, default="en")
    # Default (published-facing) revision
    revision_id = Column(Integer, nullable=True)

    revisions = relationship("ContentRevision", back_populates="content", cascade="all, delete-orphan")


class ContentRevision(Base):
    __tablename__ = "content_revisions"

    revision_id = Column(Integer, primary_key=True, autoincrement=True)
    content_id = Column(Integer, ForeignKey("content.id", ondelete="CASCADE"), nullable=False, index=True)
    revision_log = Column(Text, nullable=True)
    revision_created = Column(Integer, nullable=True)

    content = relationship("Content", back_populates="revisions")
    field_data = relationship("ContentFieldRevision", back_populates="revision", cascade="all, delete-orphan")


class ContentFieldRevision(Base):
    __tablename__ = "content_field_revisions"

    revision_id = Column(
        Integer, ForeignKey("content_revisions.revision_id", ondelete="CASCADE"), primary_key=True
    )
    langcode = Column(String(12), primary_key=True)
    content_id = Column(Integer, ForeignKey("content.id", ondelete="CASCADE"), nullable=False)
    default_langcode = Column(Boolean, nullable=False, default=True)
    title = Column(String, nullable=False)
    status = Column(Boolean, nullable=False, default=False)
    publish_on = Column(Integer, nullable=True)
    unpublish_on = Column(Integer, nullable=True)
    created = Column(Integer, nullable=False)
    changed = Column(Integer, nullable=False)

    revision = relationship("ContentRevision", back_populates="field_data")

    __table_args__ = (
        Index("idx_cfr_content_revision", "content_id", "revision_id"),
        Index("idx_cfr_publish_on", "publish_on"),
        Index("idx_cfr_unpublish_on", "unpublish_on"),
    )
