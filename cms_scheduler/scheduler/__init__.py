"""
Scheduled transition engine

    SchedulerManager      — runs the publish / unpublish passes
    CapabilityRegistry    — schedulable content kinds
    EventDispatcher       — pre/post transition notifications
    ActionRegistry        — publish / unpublish actions
    run_lightweight_cron  — the single entry point for every cron trigger
"""

from .actions import ActionRegistry, action_registry
from .capabilities import CapabilityRegistry, ContentScheduler, MediaScheduler, SchedulerPlugin, capability_registry
from .cron import build_manager, run_lightweight_cron
from .events import EventDispatcher, SchedulerEvent, SchedulerEventKind
from .manager import SchedulerManager
from .process import Process
from .reporter import CronResult, PassReport

__all__ = [
    "ActionRegistry",
    "CapabilityRegistry",
    "ContentScheduler",
    "CronResult",
    "EventDispatcher",
    "MediaScheduler",
    "PassReport",
    "Process",
    "SchedulerEvent",
    "SchedulerEventKind",
    "SchedulerManager",
    "SchedulerPlugin",
    "action_registry",
    "build_manager",
    "capability_registry",
    "run_lightweight_cron",
]
