from .sources import ACCESS_HINT, FILE_SOURCE, check_access, normalize_path, read_file_lines, read_lines

__all__ = [
    "ACCESS_HINT",
    "FILE_SOURCE",
    "check_access",
    "normalize_path",
    "read_file_lines",
    "read_lines",
]
