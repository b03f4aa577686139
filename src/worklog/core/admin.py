from django.contrib import admin, messages
from django.db import transaction

from .models import ResearchDocument, ResearchItem, ResearchNote
from .store import ItemStore
from .types import COLUMNS

store = ItemStore()


class NoteInline(admin.StackedInline):
    model = ResearchNote
    extra = 0
    fields = ["content", "created_at"]
    readonly_fields = ["created_at"]


class DocumentInline(admin.TabularInline):
    model = ResearchDocument
    extra = 0
    fields = ["title", "url", "created_at"]
    readonly_fields = ["created_at"]


@admin.register(ResearchItem)
class ResearchItemAdmin(admin.ModelAdmin):
    list_display = [
        "issue_identifier",
        "title",
        "column",
        "position",
        "note_count",
        "is_private",
    ]
    list_filter = ["column"]
    search_fields = ["issue_identifier", "title", "description"]
    ordering = ["column", "position"]
    readonly_fields = ["position", "created_at", "updated_at"]
    inlines = [NoteInline, DocumentInline]
    actions = ["renumber_columns"]
    fieldsets = [
        (None, {"fields": ["title", "description", "column", "position"]}),
        ("Issue", {"fields": ["issue_id", "issue_identifier", "issue_url"]}),
        ("Timestamps", {"fields": ["created_at", "updated_at"]}),
    ]

    def note_count(self, obj):
        return obj.notes.count()

    note_count.short_description = "Notes"

    def is_private(self, obj):
        return obj.is_private

    is_private.boolean = True
    is_private.short_description = "Private"

    def save_model(self, request, obj, form, change):
        if not change:
            with transaction.atomic():
                obj.position = store.append_position(obj.column)
                super().save_model(request, obj, form, change)
            return
        if "column" in form.changed_data:
            store.update_item(obj.pk, column=obj.column)
            obj.refresh_from_db(fields=["column", "position"])
        super().save_model(request, obj, form, change)

    def delete_model(self, request, obj):
        store.delete_item(obj.pk)

    def delete_queryset(self, request, queryset):
        with transaction.atomic():
            for pk in list(queryset.values_list("pk", flat=True)):
                store.delete_item(pk)

    @admin.action(description="Renumber columns")
    def renumber_columns(self, request, queryset):
        columns = set(queryset.values_list("column", flat=True)) or set(COLUMNS)
        renumbered = sum(store.renumber_column(column) for column in sorted(columns))
        self.message_user(
            request,
            f"Renumbered {renumbered} item(s) in {', '.join(sorted(columns))}.",
            messages.SUCCESS,
        )
