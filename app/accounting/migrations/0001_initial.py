"""
Create the ledger tables.

Changes:
    - Account with the normal-balance/type check constraint
    - EntrySequence per-period numbering counter
    - LedgerEntry with FSM-managed status
    - LedgerLine with the one-sided amount check constraint
"""

import uuid

import django.db.models.deletion
import django_fsm
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Account",
            fields=[
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
                (
                    "code",
                    models.CharField(
                        help_text="Stable account code, e.g. 1020",
                        max_length=20,
                        unique=True,
                    ),
                ),
                ("name", models.CharField(max_length=255)),
                (
                    "type",
                    models.CharField(
                        choices=[
                            ("asset", "Asset"),
                            ("liability", "Liability"),
                            ("equity", "Equity"),
                            ("income", "Income"),
                            ("expense", "Expense"),
                        ],
                        db_index=True,
                        max_length=16,
                    ),
                ),
                (
                    "normal_balance",
                    models.CharField(
                        choices=[("debit", "Debit"), ("credit", "Credit")],
                        max_length=8,
                    ),
                ),
                (
                    "category",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Sub-classification, e.g. bank, donation_liability",
                        max_length=64,
                    ),
                ),
                ("description", models.TextField(blank=True, default="")),
                (
                    "is_active",
                    models.BooleanField(
                        default=True,
                        help_text="Inactive accounts reject new postings",
                    ),
                ),
                ("is_system", models.BooleanField(default=False)),
                (
                    "parent",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="children",
                        to="accounting.account",
                    ),
                ),
            ],
            options={
                "ordering": ["code"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(
                                ("normal_balance", "debit"),
                                ("type__in", ["asset", "expense"]),
                            ),
                            models.Q(
                                ("normal_balance", "credit"),
                                ("type__in", ["liability", "equity", "income"]),
                            ),
                            _connector="OR",
                        ),
                        name="account_normal_balance_matches_type",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="EntrySequence",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "period",
                    models.CharField(
                        help_text="Posting period as YYYYMM",
                        max_length=6,
                        unique=True,
                    ),
                ),
                ("next_value", models.PositiveIntegerField(default=1)),
            ],
            options={
                "ordering": ["period"],
            },
        ),
        migrations.CreateModel(
            name="LedgerEntry",
            fields=[
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
                    "metadata",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        help_text="Flexible key-value metadata storage",
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
                ("entry_number", models.CharField(max_length=32, unique=True)),
                ("period", models.CharField(db_index=True, max_length=6)),
                ("sequence", models.PositiveIntegerField()),
                (
                    "ref_type",
                    models.CharField(
                        choices=[
                            ("donation", "Donation"),
                            ("disbursement", "Disbursement"),
                            ("qurban_savings", "Qurban Savings"),
                            ("qurban_conversion", "Qurban Savings Conversion"),
                            ("zakat", "Zakat"),
                            ("migration_backfill", "Migration Backfill"),
                            ("reversal", "Reversal"),
                            ("adjustment", "Adjustment"),
                        ],
                        db_index=True,
                        max_length=32,
                    ),
                ),
                (
                    "ref_id",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Id of the originating record (not a foreign key)",
                        max_length=64,
                    ),
                ),
                ("posted_at", models.DateTimeField(db_index=True)),
                ("memo", models.TextField(blank=True, default="")),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[
                            ("posted", "Posted"),
                            ("voided", "Voided"),
                            ("reversed", "Reversed"),
                        ],
                        db_index=True,
                        default="posted",
                        help_text="Current status of the entry (managed by FSM)",
                        max_length=50,
                        protected=True,
                    ),
                ),
                ("status_reason", models.TextField(blank=True, default="")),
                ("created_by", models.CharField(blank=True, default="", max_length=128)),
            ],
            options={
                "verbose_name_plural": "Ledger entries",
                "ordering": ["-posted_at", "-sequence"],
                "indexes": [
                    models.Index(
                        fields=["ref_type", "ref_id"],
                        name="ledger_entry_ref_idx",
                    )
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("period", "sequence"),
                        name="unique_entry_period_sequence",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="LedgerLine",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("description", models.CharField(blank=True, default="", max_length=255)),
                ("debit", models.PositiveBigIntegerField(default=0)),
                ("credit", models.PositiveBigIntegerField(default=0)),
                (
                    "account",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="lines",
                        to="accounting.account",
                    ),
                ),
                (
                    "entry",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="lines",
                        to="accounting.ledgerentry",
                    ),
                ),
            ],
            options={
                "ordering": ["id"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("credit", 0), ("debit__gt", 0)),
                            models.Q(("credit__gt", 0), ("debit", 0)),
                            _connector="OR",
                        ),
                        name="ledger_line_one_sided",
                    )
                ],
            },
        ),
    ]
