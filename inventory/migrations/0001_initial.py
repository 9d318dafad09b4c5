import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("catalog", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="StockItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("available", models.IntegerField(default=0)),
                ("held", models.IntegerField(default=0)),
                ("sold", models.IntegerField(default=0)),
                (
                    "product",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE, related_name="stock", to="catalog.product"
                    ),
                ),
            ],
            options={
                "ordering": ["-updated_at", "id"],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("available__gte", 0)), name="stock_available_non_negative"),
                    models.CheckConstraint(condition=models.Q(("held__gte", 0)), name="stock_held_non_negative"),
                    models.CheckConstraint(condition=models.Q(("sold__gte", 0)), name="stock_sold_non_negative"),
                ],
            },
        ),
        migrations.CreateModel(
            name="StockLedgerEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("delta", models.IntegerField()),
                ("quantity", models.PositiveIntegerField()),
                (
                    "reason",
                    models.CharField(
                        choices=[
                            ("restock", "Restock"),
                            ("reserve", "Reserve"),
                            ("release", "Release"),
                            ("commit", "Commit"),
                        ],
                        max_length=16,
                    ),
                ),
                ("balance", models.IntegerField()),
                ("reference", models.CharField(blank=True, max_length=120)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="ledger_entries",
                        to="catalog.product",
                    ),
                ),
            ],
            options={
                "ordering": ["id"],
                "indexes": [
                    models.Index(fields=["product", "id"], name="ledger_product_id_idx"),
                    models.Index(fields=["reference"], name="ledger_reference_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("balance__gte", 0)), name="ledger_balance_non_negative")
                ],
            },
        ),
    ]
