from .converter import NAME, ROOT_COLLECTION_NAME, MarkdownConverter
from .file_info import FileInfo
from .links import file_type_for, resolve_link

__all__ = [
    "NAME",
    "ROOT_COLLECTION_NAME",
    "FileInfo",
    "MarkdownConverter",
    "file_type_for",
    "resolve_link",
]
