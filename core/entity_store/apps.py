"""
FieldOps Entity Store - App Configuration
=========================================
Relational storage for customers, technicians, jobs, invoices and inventory.
"""

from django.apps import AppConfig


class CoreEntityStoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "core.entity_store"
    label = "core_entity_store"
    verbose_name = "FieldOps Entity Store"
