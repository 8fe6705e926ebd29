import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("catalog", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Cart",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("guest_id", models.CharField(blank=True, max_length=64, null=True)),
                ("items", models.JSONField(blank=True, default=list)),
                ("version", models.PositiveIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "store",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="carts",
                        to="catalog.store",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="carts",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "carts",
                "constraints": [
                    models.CheckConstraint(
                        condition=(
                            models.Q(("guest_id__isnull", True), ("user__isnull", False))
                            | models.Q(("guest_id__isnull", False), ("user__isnull", True))
                        ),
                        name="cart_exactly_one_owner",
                    ),
                    models.UniqueConstraint(
                        condition=models.Q(("user__isnull", False)),
                        fields=("store", "user"),
                        name="cart_unique_store_user",
                    ),
                    models.UniqueConstraint(
                        condition=models.Q(("guest_id__isnull", False)),
                        fields=("store", "guest_id"),
                        name="cart_unique_store_guest",
                    ),
                ],
            },
        ),
    ]
