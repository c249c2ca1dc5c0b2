from django.db import migrations, models


def _id_field():
    return (
        "id",
        models.BigAutoField(
            auto_created=True,
            primary_key=True,
            serialize=False,
            verbose_name="ID",
        ),
    )


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Customer",
            fields=[
                _id_field(),
                ("name", models.CharField(max_length=255)),
                ("company", models.CharField(blank=True, default="", max_length=255)),
                ("email", models.CharField(blank=True, default="", max_length=255)),
                ("phone", models.CharField(blank=True, default="", max_length=64)),
                ("address", models.TextField(blank=True, default="")),
                (
                    "customer_type",
                    models.CharField(
                        choices=[
                            ("residential", "Residential"),
                            ("commercial", "Commercial"),
                        ],
                        default="residential",
                        max_length=20,
                    ),
                ),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField()),
                ("updated_at", models.DateTimeField()),
            ],
            options={"db_table": "fieldops_customers", "ordering": ["id"]},
        ),
        migrations.CreateModel(
            name="Technician",
            fields=[
                _id_field(),
                ("name", models.CharField(max_length=255)),
                ("email", models.CharField(blank=True, default="", max_length=255)),
                ("phone", models.CharField(blank=True, default="", max_length=64)),
                ("specialization", models.CharField(blank=True, default="", max_length=255)),
                ("skills", models.JSONField(default=list)),
                (
                    "status",
                    models.CharField(
                        choices=[("active", "Active"), ("inactive", "Inactive")],
                        default="active",
                        max_length=20,
                    ),
                ),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField()),
                ("updated_at", models.DateTimeField()),
            ],
            options={"db_table": "fieldops_technicians", "ordering": ["id"]},
        ),
        migrations.CreateModel(
            name="Job",
            fields=[
                _id_field(),
                ("title", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True, default="")),
                ("customer_id", models.BigIntegerField(db_index=True)),
                ("assigned_technician", models.BigIntegerField(blank=True, db_index=True, null=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("new", "New"),
                            ("inProgress", "In Progress"),
                            ("onHold", "On Hold"),
                            ("completed", "Completed"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="new",
                        max_length=20,
                    ),
                ),
                (
                    "priority",
                    models.CharField(
                        choices=[
                            ("low", "Low"),
                            ("medium", "Medium"),
                            ("high", "High"),
                            ("urgent", "Urgent"),
                        ],
                        default="medium",
                        max_length=20,
                    ),
                ),
                ("scheduled_date", models.DateTimeField(blank=True, null=True)),
                ("location", models.CharField(blank=True, default="", max_length=255)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField()),
                ("updated_at", models.DateTimeField()),
            ],
            options={
                "db_table": "fieldops_jobs",
                "ordering": ["id"],
                "indexes": [
                    models.Index(fields=["status"], name="idx_job_status"),
                    models.Index(fields=["scheduled_date"], name="idx_job_scheduled"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Invoice",
            fields=[
                _id_field(),
                ("invoice_number", models.CharField(max_length=64, unique=True)),
                ("customer_id", models.BigIntegerField(db_index=True)),
                ("job_id", models.BigIntegerField(blank=True, null=True)),
                ("issue_date", models.DateTimeField()),
                ("due_date", models.DateTimeField()),
                ("line_items", models.JSONField(default=list)),
                ("subtotal", models.DecimalField(decimal_places=2, max_digits=14)),
                ("tax_rate", models.DecimalField(decimal_places=3, max_digits=7)),
                ("total", models.DecimalField(decimal_places=2, max_digits=14)),
                (
                    "payment_status",
                    models.CharField(
                        choices=[
                            ("unpaid", "Unpaid"),
                            ("partial", "Partial"),
                            ("paid", "Paid"),
                            ("overdue", "Overdue"),
                        ],
                        default="unpaid",
                        max_length=20,
                    ),
                ),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField()),
                ("updated_at", models.DateTimeField()),
            ],
            options={
                "db_table": "fieldops_invoices",
                "ordering": ["id"],
                "indexes": [
                    models.Index(fields=["payment_status"], name="idx_invoice_status"),
                ],
            },
        ),
        migrations.CreateModel(
            name="InventoryItem",
            fields=[
                _id_field(),
                ("sku", models.CharField(max_length=64)),
                ("name", models.CharField(max_length=255)),
                ("category", models.CharField(blank=True, default="", max_length=100)),
                ("quantity_in_stock", models.IntegerField()),
                ("minimum_stock_threshold", models.IntegerField()),
                ("unit_cost", models.DecimalField(decimal_places=2, max_digits=12)),
                ("supplier", models.CharField(blank=True, default="", max_length=255)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField()),
                ("updated_at", models.DateTimeField()),
            ],
            options={"db_table": "fieldops_inventory_items", "ordering": ["id"]},
        ),
        migrations.CreateModel(
            name="StockUsageRecord",
            fields=[
                _id_field(),
                ("item_id", models.BigIntegerField(db_index=True)),
                ("job_id", models.BigIntegerField(db_index=True)),
                ("quantity_used", models.IntegerField()),
                ("used_at", models.DateTimeField()),
                ("applied", models.BooleanField(default=False)),
            ],
            options={"db_table": "fieldops_stock_usage", "ordering": ["id"]},
        ),
    ]
