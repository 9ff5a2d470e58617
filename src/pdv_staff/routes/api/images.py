"""
Images API - upload de fotos de produtos e combos para o Supabase Storage.
"""

from http import HTTPStatus

from flask import Blueprint, jsonify, request

from pdv_shared.errors import ValidationError
from pdv_shared.logging_config import get_logger
from pdv_shared.serializers import success_response
from pdv_shared.services.catalog_service import upload_catalog_photo
from pdv_staff.decorators import admin_required

images_bp = Blueprint("images", __name__)
logger = get_logger(__name__)


@images_bp.post("/images/<kind>")
@admin_required
def upload_image(kind: str):
    """
    Sobe uma foto para o bucket do tipo (`produtos` ou `combos`).

    Form data:
    - file: arquivo de imagem
    """
    file = request.files.get("file")
    if not file:
        raise ValidationError("Selecione um arquivo")

    meta = upload_catalog_photo(kind, file.filename, file.read(), file.mimetype)
    logger.info("Uploaded %s photo %s", kind, meta["path"])
    return jsonify(success_response(meta)), HTTPStatus.CREATED
