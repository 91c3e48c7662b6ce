# realty/celery.py
import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "realty.settings")

app = Celery("realty")

# CELERY_* keys settings.py se uthayenge
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()
