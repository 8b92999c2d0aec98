"""
Request body decoding shared by the mutation endpoints.

Mutations accept JSON objects or form posts (multipart, with an optional
``image`` file). Both end up as a plain mapping that the request models in
``catalog_admin.schemas`` validate; form values stay strings until then.
"""
import json
from typing import Iterable, Optional, Tuple

from fastapi import Request
from starlette.datastructures import UploadFile

from catalog_admin.errors import ValidationError
from catalog_admin.services.asset_lifecycle import UploadedImage

FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")
IMAGE_FIELD = "image"


def _form_array(values: list):
    strings = [value for value in values if isinstance(value, str)]
    # Clients that cannot repeat a form key send the array JSON-encoded
    if len(strings) == 1 and strings[0].lstrip().startswith("["):
        try:
            decoded = json.loads(strings[0])
        except ValueError:
            return strings
        return decoded
    return strings


async def read_payload(request: Request, array_fields: Iterable[str] = ()) -> Tuple[dict, Optional[UploadedImage]]:
    """Decode the request body into (raw fields, uploaded image or None)"""
    content_type = request.headers.get("content-type", "")
    array_fields = set(array_fields)

    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        raw = {}
        image = None
        for key in form.keys():
            values = form.getlist(key)
            if key == IMAGE_FIELD:
                upload = values[0]
                if isinstance(upload, UploadFile) and upload.filename:
                    image = UploadedImage(
                        data=await upload.read(),
                        filename=upload.filename,
                        content_type=upload.content_type,
                        field_name=IMAGE_FIELD,
                    )
                continue
            name = key[:-2] if key.endswith("[]") else key
            if name in array_fields:
                raw[name] = _form_array(values)
            else:
                raw[name] = values[-1]
        return raw, image

    if not (await request.body()).strip():
        return {}, None
    try:
        data = await request.json()
    except ValueError:
        raise ValidationError("Request body is not valid JSON")
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data, None
