from fliq.tasks.celery_app import celery
from fliq.tasks import worker_jobs


@celery.task(name="fliq.tasks.jobs.process_email_queue")
def process_email_queue(limit: int = 50):
    return worker_jobs.process_email_queue(limit=limit)
