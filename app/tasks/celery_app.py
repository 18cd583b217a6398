from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from celery import Celery
from celery.signals import worker_process_init
from app.core.config import settings
from app.core.logging import configure_logging


def broker_url(url: str, cert_reqs: str = settings.REDIS_SSL_CERT_REQS) -> str:
    """Celery refuses rediss:// without ssl_cert_reqs; add it unless the URL sets it."""
    parts = urlsplit(url or "")
    if parts.scheme != "rediss":
        return url
    query = dict(parse_qsl(parts.query))
    query.setdefault("ssl_cert_reqs", cert_reqs)
    return urlunsplit(parts._replace(query=urlencode(query)))


_broker = broker_url(settings.REDIS_URL)

celery = Celery(
    "experiences",
    broker=_broker,
    backend=_broker,
    include=["app.tasks.jobs"],
)
celery.conf.timezone = settings.TIMEZONE
celery.conf.beat_schedule = {
    "complete-finished-bookings": {
        "task": "app.tasks.jobs.complete_finished_bookings",
        "schedule": 15 * 60.0,
    },
}


@worker_process_init.connect
def on_worker_process_init(**kwargs):
    configure_logging()
