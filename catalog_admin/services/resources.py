"""Field layouts for the simple list-and-edit pages."""
from dataclasses import dataclass, field

from catalog_admin.models.product_draft import MultipartPayload
from catalog_admin.models.variant import StagedFile
from catalog_admin.services import image_service
from catalog_admin.services.api_client import normalize_list


@dataclass(frozen=True)
class Field:
    name: str
    label: str
    kind: str = "text"  # text | textarea | checkbox | datetime | image | video
    required: bool = False


@dataclass(frozen=True)
class Resource:
    name: str
    title: str
    singular: str
    endpoint: str
    fields: tuple
    columns: tuple
    encoding: str = "json"  # json | multipart
    list_keys: tuple = field(default_factory=tuple)

    def fetch(self, api):
        return normalize_list(api.get(self.endpoint), *self.list_keys)

    def form_values(self, record=None):
        """Initial values for the edit form, from a backend record."""
        record = record or {}
        values = {}
        for f in self.fields:
            if f.kind in ("image", "video"):
                continue
            value = record.get(f.name)
            if f.kind == "checkbox":
                values[f.name] = bool(value) if f.name in record else True
            elif f.kind == "datetime":
                values[f.name] = (value or "")[:16]
            else:
                values[f.name] = value or ""
        return values

    def build_body(self, form, files, max_image_bytes=image_service.MAX_FILE_SIZE):
        """JSON dict or ``MultipartPayload`` for create/update.

        Raises ``ImageRejected`` for an invalid image upload and ``ValueError``
        when a required field is empty.
        """
        values = {}
        for f in self.fields:
            if f.kind in ("image", "video"):
                continue
            if f.kind == "checkbox":
                values[f.name] = f.name in form
                continue
            value = form.get(f.name, "").strip()
            if f.required and not value:
                raise ValueError(f"{f.label} is required.")
            values[f.name] = value

        if self.encoding == "json":
            return values

        payload = MultipartPayload()
        for name, value in values.items():
            payload.add(name, ("true" if value else "false") if isinstance(value, bool) else value)
        for f in self.fields:
            upload = files.get(f.name)
            if not upload or not upload.filename:
                continue
            if f.kind == "image":
                payload.add_file(f.name, image_service.stage_upload(upload, max_size=max_image_bytes))
            elif f.kind == "video":
                filename, data, content_type = image_service.raw_upload(upload)
                payload.add_file(f.name, StagedFile(filename, content_type, data))
        return payload


CATEGORIES = Resource(
    name="categories",
    title="Categories",
    singular="Category",
    endpoint="/categories",
    encoding="multipart",
    list_keys=("categories",),
    fields=(
        Field("name", "Name", required=True),
        Field("description", "Description", "textarea"),
        Field("isActive", "Active", "checkbox"),
        Field("image", "Image", "image"),
    ),
    columns=(("name", "Name"), ("description", "Description"), ("isActive", "Active")),
)

NOTIFICATIONS = Resource(
    name="notifications",
    title="Notifications",
    singular="Notification",
    endpoint="/notifications",
    encoding="multipart",
    list_keys=("notifications",),
    fields=(
        Field("title", "Title", required=True),
        Field("message", "Message", "textarea", required=True),
        Field("startDate", "Start", "datetime", required=True),
        Field("endDate", "End", "datetime", required=True),
        Field("image", "Image", "image"),
    ),
    columns=(("title", "Title"), ("message", "Message"), ("startDate", "Start"), ("endDate", "End")),
)

POLICIES = Resource(
    name="policies",
    title="Policies",
    singular="Policy",
    endpoint="/policies",
    list_keys=("policies",),
    fields=(
        Field("title", "Title", required=True),
        Field("content", "Content", "textarea", required=True),
    ),
    columns=(("title", "Title"), ("content", "Content")),
)

PDFS = Resource(
    name="pdfs",
    title="PDFs",
    singular="PDF",
    endpoint="/pdfs",
    list_keys=("pdfs",),
    fields=(
        Field("name", "PDF Name", required=True),
        Field("pdfLink", "PDF Link", required=True),
        Field("image", "Image URL"),
        Field("description", "Description", "textarea"),
    ),
    columns=(("name", "Name"), ("pdfLink", "Link"), ("description", "Description")),
)

VIDEOS = Resource(
    name="videos",
    title="Videos",
    singular="Video",
    endpoint="/videos",
    encoding="multipart",
    list_keys=("videos",),
    fields=(
        Field("name", "Video Name", required=True),
        Field("description", "Description", "textarea"),
        Field("video", "Video file", "video"),
        Field("image", "Thumbnail", "image"),
    ),
    columns=(("name", "Name"), ("videoLink", "Link"), ("description", "Description")),
)
