from app.tasks.celery_app import broker_url, celery


def test_plain_redis_url_is_untouched():
    assert broker_url("redis://localhost:6379/0") == "redis://localhost:6379/0"


def test_tls_url_gets_cert_requirement():
    assert broker_url("rediss://:pw@cache:6380/0", "CERT_REQUIRED") == "rediss://:pw@cache:6380/0?ssl_cert_reqs=CERT_REQUIRED"


def test_explicit_cert_requirement_is_kept():
    url = "rediss://cache:6380/0?ssl_cert_reqs=CERT_NONE"

    assert broker_url(url, "CERT_REQUIRED") == url


def test_completion_job_is_scheduled():
    entry = celery.conf.beat_schedule["complete-finished-bookings"]

    assert entry["task"] == "app.tasks.jobs.complete_finished_bookings"
    assert entry["schedule"] == 900.0
