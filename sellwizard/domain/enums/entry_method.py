from enum import Enum


class SourceType(str, Enum):
    """How an item record was added (stored on the record)."""

    URL_IMPORT = "url_import"
    PHOTO_UPLOAD = "photo_upload"
    MANUAL = "manual"


class EntryMethod(str, Enum):
    """Entry method chosen on the Add Item step."""

    URL = "url"
    PHOTO = "photo"
    MANUAL = "manual"

    @property
    def source_type(self) -> SourceType:
        return {
            EntryMethod.URL: SourceType.URL_IMPORT,
            EntryMethod.PHOTO: SourceType.PHOTO_UPLOAD,
            EntryMethod.MANUAL: SourceType.MANUAL,
        }[self]

    @property
    def default_title(self) -> str:
        return "Imported item" if self is EntryMethod.URL else "New item"

    @classmethod
    def for_source(cls, source_type: SourceType) -> "EntryMethod":
        return next(method for method in cls if method.source_type is source_type)
