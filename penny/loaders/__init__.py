from importlib import import_module
from pathlib import Path

from penny.config import DEFAULT_CONFIG
from penny.exceptions import UnsupportedFileError


def get_parser(filename, config=None, categorizer=None):
    parsers = (config or DEFAULT_CONFIG)['file_parsers']
    ext = Path(str(filename)).suffix.lower().lstrip('.')
    parser_path = parsers.get(ext)
    if not parser_path:
        raise UnsupportedFileError(
            f"No parser registered for '{filename}'. Supported: {', '.join(sorted(parsers))}"
        )
    module_name, cls_name = parser_path.rsplit('.', 1)
    mod = import_module(module_name)
    return getattr(mod, cls_name)(categorizer)
