from celery import Celery

# Celery app owning the notification, retry and expiry job tasks
celery = Celery("eventnoti")

# Load configuration from app.config.celeryconfig module
celery.config_from_object("app.config.celeryconfig")
