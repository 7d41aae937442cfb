from celery import Celery

from app.core.config import Settings, get_settings


def make_celery(app_name: str = "event_registry", settings: Settings | None = None) -> Celery:
    settings = settings or get_settings()
    celery = Celery(
        app_name,
        broker=settings.celery_broker_url,
        backend=settings.celery_result_backend,
        include=["app.tasks"],
    )
    celery.conf.update(
        task_serializer="json",
        result_serializer="json",
        accept_content=["json"],
        result_persistent=False,
        task_track_started=settings.CELERY_TASK_TRACK_STARTED,
        # Publishing happens inside an HTTP request, so a dead broker must fail fast
        task_publish_retry_policy={
            "max_retries": settings.CELERY_PUBLISH_MAX_RETRIES,
            "interval_start": 0,
            "interval_step": settings.CELERY_PUBLISH_RETRY_INTERVAL,
        },
    )
    return celery


celery_app = make_celery()
