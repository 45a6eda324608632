from booking_engine.scheduling.cascade import CascadeRescheduler, plan_cascade
from booking_engine.scheduling.conflict_checker import ConflictChecker, intervals_conflict
from booking_engine.scheduling.lifecycle import BookingLifecycleManager
from booking_engine.scheduling.locks import ProviderLockPool
from booking_engine.scheduling.slot_generator import SlotGenerator

__all__ = [
    "BookingLifecycleManager",
    "CascadeRescheduler",
    "ConflictChecker",
    "ProviderLockPool",
    "SlotGenerator",
    "intervals_conflict",
    "plan_cascade",
]
