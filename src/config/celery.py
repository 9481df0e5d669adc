"""
Configuración de Celery para el proyecto Pedidos.

El worker drena el outbox transaccional (``core.publish_outbox_events``);
el intervalo de beat y el tamaño de lote vienen de las settings de Django
(prefijo ``CELERY_`` y ``OUTBOX_*``).
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("pedidos")

# Lee la configuración de Django con prefijo CELERY_ (incluye CELERY_BEAT_SCHEDULE)
app.config_from_object("django.conf:settings", namespace="CELERY")

# Descubre tasks.py en cada app instalada
app.autodiscover_tasks()
