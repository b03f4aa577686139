from django.contrib import admin
from django.urls import path

from worklog.core import views

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/auth/", views.auth_status, name="auth_status"),
    path("api/research/", views.research_items, name="research_items"),
    path("api/research/reorder/", views.research_reorder, name="research_reorder"),
    path("api/research/<int:item_id>/", views.research_item, name="research_item"),
    path(
        "api/research/<int:item_id>/notes/",
        views.research_notes,
        name="research_notes",
    ),
    path(
        "api/research/<int:item_id>/notes/<int:note_id>/",
        views.research_note,
        name="research_note",
    ),
    path(
        "api/research/<int:item_id>/documents/",
        views.research_documents,
        name="research_documents",
    ),
    path(
        "api/research/<int:item_id>/documents/<int:document_id>/",
        views.research_document,
        name="research_document",
    ),
]
