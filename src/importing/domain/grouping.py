from collections.abc import Sequence

from src.importing.domain.models import AssetReference, GroupingResult, ImportUnit, UploadedFile
from src.importing.domain.rules import (
    DOCUMENT_EXTENSIONS,
    IMAGE_EXTENSIONS,
    asset_matches_document,
    get_base_name,
    get_extension,
    make_slug,
)
from src.importing.domain.sniffing import sniff_image_type
from src.notes.domain.rules import safe_asset_name


def build_asset_reference(file: UploadedFile) -> AssetReference:
    return AssetReference(
        filename=file.filename,
        data=file.data,
        declared_extension=get_extension(file.filename),
        sniffed_type=sniff_image_type(file.data),
        stored_name=safe_asset_name(file.filename),
    )


def group_files(files: Sequence[UploadedFile]) -> GroupingResult:
    """Partition uploads into one unit per HTML document plus its images.

    An image belongs to every document whose base name equals its own base name
    or prefixes it followed by ``-`` or ``_``. Files that are neither documents
    nor images are dropped.
    """
    documents: list[UploadedFile] = []
    images: list[UploadedFile] = []
    for file in files:
        ext = get_extension(file.filename)
        if ext in DOCUMENT_EXTENSIONS:
            documents.append(file)
        elif ext in IMAGE_EXTENSIONS:
            images.append(file)

    assets = [build_asset_reference(image) for image in images]
    claimed: set[int] = set()
    units: list[ImportUnit] = []

    for document in documents:
        base_name = get_base_name(document.filename)
        matched: list[AssetReference] = []
        for index, asset in enumerate(assets):
            if asset_matches_document(get_base_name(asset.filename), base_name):
                matched.append(asset)
                claimed.add(index)
        units.append(
            ImportUnit(
                name=base_name,
                slug=make_slug(base_name),
                primary_document=document,
                assets=tuple(matched),
            )
        )

    unmatched = tuple(asset.filename for index, asset in enumerate(assets) if index not in claimed)
    return GroupingResult(units=tuple(units), unmatched=unmatched)
