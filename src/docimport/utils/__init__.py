from .ids import new_block_id, new_object_id, new_option_id, new_relation_key, relation_id
from .text import is_whole_line, utf16_len, utf16_slice
from .uri import is_remote, validate_uri

__all__ = [
    "is_remote",
    "is_whole_line",
    "new_block_id",
    "new_object_id",
    "new_option_id",
    "new_relation_key",
    "relation_id",
    "utf16_len",
    "utf16_slice",
    "validate_uri",
]
