from celery import Celery

from restaurant_pos.core.config import settings

NOTIFICATIONS_QUEUE = 'notifications'

celery_app = Celery(
    'restaurant_pos',
    broker=settings.rabbit_url,
    backend='rpc://',
    include=['celery_app.tasks'],
)

celery_app.conf.update(
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    enable_utc=True,
    timezone=settings.DEFAULT_BRANCH_TIMEZONE,
    task_default_queue=NOTIFICATIONS_QUEUE,
    task_routes={'celery_app.tasks.*': {'queue': NOTIFICATIONS_QUEUE}},
)
