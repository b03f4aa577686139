import json
import logging
from dataclasses import asdict
from functools import wraps

from django.core.exceptions import ValidationError
from django.core.validators import URLValidator
from django.http import JsonResponse
from django.views.decorators.http import require_GET, require_http_methods

from .auth import can_mutate
from .exceptions import BoardError, MutationNotAllowed, NotFound, UnknownItem
from .models import ResearchDocument, ResearchNote
from .store import ItemStore
from .types import DEFAULT_COLUMN, IssueReference
from .visibility import search_items

logger = logging.getLogger(__name__)

store = ItemStore()


def serialize_item(item):
    return asdict(item)


def _error(message, status):
    return JsonResponse({"error": message}, status=status)


def _json_body(request):
    try:
        data = json.loads(request.body or b"{}")
    except (TypeError, ValueError):
        raise BoardError("Invalid JSON body") from None
    if not isinstance(data, dict):
        raise BoardError("Request body must be a JSON object")
    return data


def board_api(view):
    """Turn board errors into JSON error responses."""

    @wraps(view)
    def wrapped(request, *args, **kwargs):
        try:
            return view(request, *args, **kwargs)
        except BoardError as e:
            if e.status_code >= 500:
                logger.error("%s %s failed: %s", request.method, request.path, e)
            return _error(str(e), e.status_code)

    return wrapped


def _require_mutation(request):
    if not can_mutate(request):
        raise MutationNotAllowed()


def _get_visible_item(request, item_id):
    item = store.get(item_id)
    if item.is_private and not can_mutate(request):
        raise UnknownItem(item_id)
    return item


@require_GET
def auth_status(request):
    return JsonResponse(
        {
            "authenticated": request.user.is_authenticated,
            "may_mutate": can_mutate(request),
        }
    )


@require_http_methods(["GET", "POST"])
@board_api
def research_items(request):
    if request.method == "GET":
        items = store.snapshot(privileged=can_mutate(request))
        items = search_items(
            items,
            column=request.GET.get("column") or None,
            query=request.GET.get("q", ""),
            sort=request.GET.get("sort") or None,
        )
        return JsonResponse([serialize_item(item) for item in items], safe=False)

    _require_mutation(request)
    data = _json_body(request)
    reference = IssueReference(
        issue_id=str(data.get("issue_id") or ""),
        identifier=str(data.get("issue_identifier") or ""),
        title=str(data.get("title") or ""),
        url=str(data.get("issue_url") or ""),
    )
    item = store.add_item(
        reference,
        column=data.get("column", DEFAULT_COLUMN),
        description=data.get("description") or "",
    )
    return JsonResponse(serialize_item(item.to_board_item()), status=201)


@require_http_methods(["GET", "PUT", "DELETE"])
@board_api
def research_item(request, item_id):
    if request.method == "GET":
        item = _get_visible_item(request, item_id)
        return JsonResponse(serialize_item(item.to_board_item()))

    _require_mutation(request)
    if request.method == "DELETE":
        store.delete_item(item_id)
        return JsonResponse({"success": True})

    data = _json_body(request)
    fields = {key: data[key] for key in ("title", "description", "column") if key in data}
    if fields.get("title") == "":
        raise BoardError("Title cannot be empty")
    item = store.update_item(item_id, **fields)
    return JsonResponse(serialize_item(item.to_board_item()))


@require_http_methods(["PATCH"])
@board_api
def research_reorder(request):
    _require_mutation(request)
    data = _json_body(request)
    updated = store.apply_batch(data.get("items"))
    return JsonResponse({"success": True, "updated": len(updated)})


@require_http_methods(["POST"])
@board_api
def research_notes(request, item_id):
    _require_mutation(request)
    item = store.get(item_id)
    content = str(_json_body(request).get("content") or "").strip()
    if not content:
        raise BoardError("Note content is required")
    note = ResearchNote.objects.create(item=item, content=content)
    return JsonResponse(asdict(note.to_value()), status=201)


@require_http_methods(["PUT", "DELETE"])
@board_api
def research_note(request, item_id, note_id):
    _require_mutation(request)
    note = _get_child(ResearchNote, item_id, note_id, "Note")
    if request.method == "DELETE":
        note.delete()
        return JsonResponse({"success": True})

    content = str(_json_body(request).get("content") or "").strip()
    if not content:
        raise BoardError("Note content is required")
    note.content = content
    note.save()
    return JsonResponse(asdict(note.to_value()))


@require_http_methods(["POST"])
@board_api
def research_documents(request, item_id):
    _require_mutation(request)
    item = store.get(item_id)
    data = _json_body(request)
    title = str(data.get("title") or "").strip()
    url = str(data.get("url") or "").strip()
    if not title or not url:
        raise BoardError("Document title and url are required")
    try:
        URLValidator()(url)
    except ValidationError:
        raise BoardError(f"Invalid document url {url!r}") from None
    document = ResearchDocument.objects.create(item=item, title=title, url=url)
    return JsonResponse(asdict(document.to_value()), status=201)


@require_http_methods(["DELETE"])
@board_api
def research_document(request, item_id, document_id):
    _require_mutation(request)
    document = _get_child(ResearchDocument, item_id, document_id, "Document")
    document.delete()
    return JsonResponse({"success": True})


def _get_child(model, item_id, child_id, label):
    try:
        return model.objects.get(pk=child_id, item_id=item_id)
    except model.DoesNotExist:
        raise NotFound(f"{label} {child_id} not found") from None
