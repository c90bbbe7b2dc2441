"""
Django admin configuration for ledger models.

Accounts are editable for descriptive fields only; classification and
activation go through ChartOfAccountsService. Ledger entries are
read-only: corrections are made with void or reversal entries.
"""

from django.contrib import admin

from .models import Account, LedgerEntry, LedgerLine
from .services import ChartOfAccountsService


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    """
    Admin configuration for Account.

    Balance is computed dynamically from related lines.
    """

    list_display = [
        "code",
        "name",
        "type",
        "normal_balance",
        "category",
        "balance_display",
        "is_active",
        "is_system",
    ]
    list_filter = ["type", "is_active", "is_system"]
    search_fields = ["code", "name", "category"]
    readonly_fields = [
        "id",
        "code",
        "type",
        "normal_balance",
        "is_active",
        "is_system",
        "created_at",
        "updated_at",
        "balance_display",
    ]
    ordering = ["code"]

    fieldsets = (
        (
            None,
            {
                "fields": ("id", "code", "name", "type", "normal_balance"),
            },
        ),
        (
            "Classification",
            {
                "fields": ("category", "parent", "description"),
            },
        ),
        (
            "Status",
            {
                "fields": ("is_active", "is_system", "balance_display"),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
            },
        ),
    )

    def balance_display(self, obj: Account) -> str:
        return f"Rp {obj.get_balance():,}"

    balance_display.short_description = "Balance"

    def save_model(self, request, obj, form, change):
        super().save_model(request, obj, form, change)
        # Category edits change the canonical key sets
        ChartOfAccountsService.invalidate_cache()

    def has_delete_permission(self, request, obj=None) -> bool:
        return False


class LedgerLineInline(admin.TabularInline):
    model = LedgerLine
    fields = ["account", "description", "debit", "credit"]
    readonly_fields = fields
    extra = 0
    can_delete = False

    def has_add_permission(self, request, obj=None) -> bool:
        return False


@admin.register(LedgerEntry)
class LedgerEntryAdmin(admin.ModelAdmin):
    """
    Admin configuration for LedgerEntry.

    Entries are immutable: no add, edit or delete through the admin.
    Entries are created only by PostingService.
    """

    list_display = [
        "entry_number",
        "posted_at",
        "ref_type",
        "ref_id",
        "status",
        "memo",
        "created_by",
    ]
    list_filter = ["ref_type", "status", "period"]
    search_fields = ["entry_number", "ref_id", "memo"]
    readonly_fields = [
        "id",
        "entry_number",
        "period",
        "sequence",
        "ref_type",
        "ref_id",
        "posted_at",
        "memo",
        "status",
        "status_reason",
        "metadata",
        "created_by",
        "created_at",
    ]
    inlines = [LedgerLineInline]
    date_hierarchy = "posted_at"
    ordering = ["-posted_at", "-sequence"]

    def has_delete_permission(self, request, obj=None) -> bool:
        return False

    def has_change_permission(self, request, obj=None) -> bool:
        return False

    def has_add_permission(self, request) -> bool:
        return False
