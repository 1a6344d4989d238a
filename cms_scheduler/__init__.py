"""CMS Scheduler: scheduled publishing and unpublishing of content items."""

__version__ = "1.0.0"
