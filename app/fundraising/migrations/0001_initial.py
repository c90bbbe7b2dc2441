"""
Create the fundraising business record tables.

Changes:
    - Transaction, TransactionPayment, Disbursement
    - QurbanPackagePeriod, QurbanSavings
    - QurbanSavingsTransaction with FSM-managed migration_state
    - QurbanSavingsConversion linked to its legacy source row
"""

import uuid

import django.db.models.deletion
import django_fsm
from django.db import migrations, models


def timestamp_fields():
    return [
        (
            "created_at",
            models.DateTimeField(
                auto_now_add=True,
                db_index=True,
                help_text="Timestamp when this record was created",
            ),
        ),
        (
            "updated_at",
            models.DateTimeField(
                auto_now=True,
                help_text="Timestamp when this record was last modified",
            ),
        ),
        (
            "id",
            models.UUIDField(
                default=uuid.uuid4,
                editable=False,
                help_text="Unique identifier for this record",
                primary_key=True,
                serialize=False,
            ),
        ),
    ]


TRANSACTION_TYPE_CHOICES = [("income", "Income"), ("expense", "Expense")]

VERIFICATION_STATUS_CHOICES = [
    ("pending", "Pending"),
    ("verified", "Verified"),
    ("rejected", "Rejected"),
]


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("accounting", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Transaction",
            fields=timestamp_fields()
            + [
                (
                    "transaction_number",
                    models.CharField(
                        help_text="Human-readable number, e.g. TRX-20240115-AB12CD34",
                        max_length=64,
                        unique=True,
                    ),
                ),
                (
                    "product_type",
                    models.CharField(
                        help_text="campaign, zakat, qurban or qurban_savings",
                        max_length=32,
                    ),
                ),
                ("product_id", models.CharField(blank=True, default="", max_length=64)),
                ("product_name", models.CharField(blank=True, default="", max_length=255)),
                ("total_amount", models.PositiveBigIntegerField(default=0)),
                ("donor_name", models.CharField(blank=True, default="", max_length=255)),
                ("donor_email", models.EmailField(blank=True, default="", max_length=254)),
                ("donor_phone", models.CharField(blank=True, default="", max_length=32)),
                (
                    "payment_status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("processing", "Processing"),
                            ("partial", "Partial"),
                            ("paid", "Paid"),
                            ("cancelled", "Cancelled"),
                        ],
                        db_index=True,
                        default="pending",
                        max_length=16,
                    ),
                ),
                ("paid_amount", models.PositiveBigIntegerField(default=0)),
                ("paid_at", models.DateTimeField(blank=True, null=True)),
                (
                    "transaction_type",
                    models.CharField(
                        choices=TRANSACTION_TYPE_CHOICES,
                        default="income",
                        max_length=16,
                    ),
                ),
                (
                    "category",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Chart-of-accounts code or category key",
                        max_length=64,
                    ),
                ),
                ("notes", models.TextField(blank=True, default="")),
                (
                    "type_specific_data",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        help_text="Product-specific payload; backfilled rows carry "
                        "legacy_savings_transaction_id here",
                    ),
                ),
                (
                    "ledger_entry",
                    models.ForeignKey(
                        blank=True,
                        help_text="Journal entry recording this transaction, once posted",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to="accounting.ledgerentry",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["transaction_type", "category"],
                        name="transaction_type_category_idx",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="TransactionPayment",
            fields=timestamp_fields()
            + [
                ("payment_number", models.CharField(max_length=64, unique=True)),
                ("amount", models.PositiveBigIntegerField()),
                ("payment_date", models.DateTimeField()),
                ("payment_method", models.CharField(blank=True, default="", max_length=32)),
                ("payment_channel", models.CharField(blank=True, default="", max_length=64)),
                (
                    "status",
                    models.CharField(
                        choices=VERIFICATION_STATUS_CHOICES,
                        default="pending",
                        max_length=16,
                    ),
                ),
                ("verified_at", models.DateTimeField(blank=True, null=True)),
                ("rejected_at", models.DateTimeField(blank=True, null=True)),
                ("rejection_reason", models.TextField(blank=True, default="")),
                ("notes", models.TextField(blank=True, default="")),
                (
                    "transaction",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="payments",
                        to="fundraising.transaction",
                    ),
                ),
            ],
            options={
                "ordering": ["-payment_date"],
            },
        ),
        migrations.CreateModel(
            name="Disbursement",
            fields=timestamp_fields()
            + [
                ("disbursement_number", models.CharField(max_length=64, unique=True)),
                (
                    "disbursement_type",
                    models.CharField(
                        help_text="campaign, zakat, qurban or operational",
                        max_length=32,
                    ),
                ),
                ("amount", models.PositiveBigIntegerField()),
                (
                    "transaction_type",
                    models.CharField(
                        choices=TRANSACTION_TYPE_CHOICES,
                        default="expense",
                        max_length=16,
                    ),
                ),
                ("category", models.CharField(blank=True, default="", max_length=64)),
                ("recipient_name", models.CharField(blank=True, default="", max_length=255)),
                ("purpose", models.TextField(blank=True, default="")),
                ("description", models.TextField(blank=True, default="")),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("draft", "Draft"),
                            ("submitted", "Submitted"),
                            ("approved", "Approved"),
                            ("paid", "Paid"),
                            ("rejected", "Rejected"),
                        ],
                        db_index=True,
                        default="draft",
                        max_length=16,
                    ),
                ),
                ("paid_at", models.DateTimeField(blank=True, null=True)),
                (
                    "ledger_entry",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to="accounting.ledgerentry",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["transaction_type", "category"],
                        name="disbursement_type_category_idx",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="QurbanPackagePeriod",
            fields=timestamp_fields()
            + [
                ("package_id", models.CharField(max_length=64)),
                ("period_id", models.CharField(max_length=64)),
                ("package_name", models.CharField(max_length=255)),
                ("price", models.PositiveBigIntegerField(default=0)),
            ],
            options={
                "ordering": ["package_name"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("package_id", "period_id"),
                        name="unique_package_period",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="QurbanSavings",
            fields=timestamp_fields()
            + [
                ("savings_number", models.CharField(max_length=64, unique=True)),
                ("donor_name", models.CharField(max_length=255)),
                ("donor_email", models.EmailField(blank=True, default="", max_length=254)),
                ("donor_phone", models.CharField(blank=True, default="", max_length=32)),
                ("target_package_id", models.CharField(blank=True, default="", max_length=64)),
                ("target_period_id", models.CharField(blank=True, default="", max_length=64)),
                ("target_amount", models.PositiveBigIntegerField(default=0)),
                ("current_amount", models.PositiveBigIntegerField(default=0)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("active", "Active"),
                            ("paused", "Paused"),
                            ("completed", "Completed"),
                            ("converted", "Converted"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="active",
                        max_length=16,
                    ),
                ),
                (
                    "target_package_period",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="savings",
                        to="fundraising.qurbanpackageperiod",
                    ),
                ),
            ],
            options={
                "verbose_name_plural": "Qurban savings",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="QurbanSavingsTransaction",
            fields=timestamp_fields()
            + [
                ("transaction_number", models.CharField(max_length=64, unique=True)),
                (
                    "transaction_type",
                    models.CharField(
                        help_text="deposit, withdrawal or conversion",
                        max_length=16,
                    ),
                ),
                ("amount", models.BigIntegerField()),
                (
                    "status",
                    models.CharField(
                        choices=VERIFICATION_STATUS_CHOICES,
                        default="pending",
                        max_length=16,
                    ),
                ),
                ("transaction_date", models.DateTimeField(db_index=True)),
                ("verified_at", models.DateTimeField(blank=True, null=True)),
                ("payment_method", models.CharField(blank=True, default="", max_length=32)),
                ("payment_channel", models.CharField(blank=True, default="", max_length=64)),
                ("notes", models.TextField(blank=True, default="")),
                (
                    "migration_state",
                    django_fsm.FSMField(
                        choices=[
                            ("unmigrated", "Unmigrated"),
                            ("migrated", "Migrated"),
                            ("skipped", "Skipped"),
                        ],
                        db_index=True,
                        default="unmigrated",
                        help_text="Backfill outcome (managed by FSM)",
                        max_length=50,
                        protected=True,
                    ),
                ),
                (
                    "skip_reason",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("unsupported", "Unsupported transaction type"),
                            ("invalid_reference", "Unresolvable reference"),
                        ],
                        default="",
                        max_length=32,
                    ),
                ),
                ("skip_detail", models.TextField(blank=True, default="")),
                (
                    "savings",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="legacy_transactions",
                        to="fundraising.qurbansavings",
                    ),
                ),
            ],
            options={
                "ordering": ["transaction_date"],
            },
        ),
        migrations.CreateModel(
            name="QurbanSavingsConversion",
            fields=timestamp_fields()
            + [
                ("converted_amount", models.PositiveBigIntegerField()),
                ("converted_at", models.DateTimeField()),
                ("converted_by", models.CharField(blank=True, default="", max_length=128)),
                ("notes", models.TextField(blank=True, default="")),
                (
                    "ledger_entry",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to="accounting.ledgerentry",
                    ),
                ),
                (
                    "savings",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="conversions",
                        to="fundraising.qurbansavings",
                    ),
                ),
                (
                    "source_legacy_transaction",
                    models.OneToOneField(
                        blank=True,
                        help_text="Legacy row this conversion was backfilled from",
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="conversion",
                        to="fundraising.qurbansavingstransaction",
                    ),
                ),
            ],
            options={
                "ordering": ["-converted_at"],
            },
        ),
    ]
