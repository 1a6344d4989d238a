"""
EntityBundle model

One row per (entity type, bundle) pair, e.g. ("content", "article") or
("media", "video"). The `scheduler_settings` column holds the per-bundle
capability overrides (publish_enable, publish_past_date, ...) without the
`default_` prefix used by the global settings.
"""

from sqlalchemy import JSON, Column, Integer, String, UniqueConstraint

from cms_scheduler.database import Base


class EntityBundle(Base):
    __tablename__ = "scheduler_bundles"

    id = Column(Integer, primary_key=True, index=True)
    entity_type = Column(String(32), nullable=False, index=True)
    bundle = Column(String(64), nullable=False)
    label = Column(String, nullable=False)
    scheduler_settings = Column(JSON, default=dict, nullable=False)

    __table_args__ = (UniqueConstraint("entity_type", "bundle", name="uq_scheduler_bundle"),)

    def get_third_party_setting(self, key: str, default=None):
        """Return a scheduler override for this bundle, or `default` when unset."""
        return (self.scheduler_settings or {}).get(key, default)

    def __repr__(self):
        return f"<EntityBundle(entity_type={self.entity_type}, bundle={self.bundle})>"
