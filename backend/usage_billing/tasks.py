from typing import Any

from arq import create_pool
from arq.connections import ArqRedis, RedisSettings
from arq.jobs import Job

from usage_billing.core.config import settings

# Redis connection settings
redis_settings = RedisSettings.from_dsn(settings.REDIS_URL)


async def get_redis_pool() -> ArqRedis:
    """Get or create Redis pool for arq"""
    return await create_pool(redis_settings)


async def enqueue_task(task_name: str, *args: Any, **kwargs: Any) -> Job:
    """
    Enqueue a task to the arq worker.

    Args:
        task_name: Name of the task function
        *args: Positional arguments for the task
        **kwargs: Keyword arguments for the task

    Returns:
        Job object from arq
    """
    pool = await get_redis_pool()
    try:
        job = await pool.enqueue_job(task_name, *args, **kwargs)
        return job  # type: ignore[return-value]
    finally:
        await pool.close()


async def enqueue_process_usage_events() -> Job:
    """Enqueue a pricing and invoicing pass over unprocessed usage events."""
    return await enqueue_task("process_usage_events_task")


async def enqueue_check_quota_limits(
    user_id: str | None = None, organization_id: str | None = None
) -> Job:
    return await enqueue_task(
        "check_quota_limits_task", user_id=user_id, organization_id=organization_id
    )


async def enqueue_send_billing_alerts() -> Job:
    return await enqueue_task("send_billing_alerts_task")


async def enqueue_reset_quotas(reset_period: str, dry_run: bool = False) -> Job:
    return await enqueue_task("reset_quotas_task", reset_period, dry_run=dry_run)
