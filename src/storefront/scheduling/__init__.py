from storefront.scheduling.asyncio_adapter import AsyncioScheduler
from storefront.scheduling.fake_adapter import ManualScheduler
from storefront.scheduling.port import Scheduler, TimerHandle

__all__ = ["AsyncioScheduler", "ManualScheduler", "Scheduler", "TimerHandle"]
