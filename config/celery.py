import os
from celery import Celery
from celery import signals

# set the default Django settings module for the 'celery' program.
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

app = Celery('stars')

# Using a string here means the worker doesn't have to serialize
# the configuration object to child processes.
# - namespace='CELERY' means all celery-related configuration keys
#   should have a `CELERY_` prefix.
app.config_from_object('django.conf:settings', namespace='CELERY')

# Load task modules from all registered Django app configs.
app.autodiscover_tasks()


@signals.task_prerun.connect
def _celery_prerun_close_stale_conns(*args, **kwargs):
    # Drop any stale/dangling DB connections before the task starts
    from django.db import close_old_connections
    close_old_connections()


@signals.task_postrun.connect
def _celery_postrun_close_all_conns(*args, **kwargs):
    from django.db import connections
    for conn in connections.all():
        conn.close()
