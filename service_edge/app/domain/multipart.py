"""
Multipart helpers for worker script bundles.

Bundle parts are kept as raw bytes whatever their name, filename or content
type; modules may be binary (wasm, data blobs) and must upload unchanged.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import MultipartParser, parse_options_header

from shared.errors import ValidationError

SCRIPT_EXTENSIONS = (".js", ".mjs")
MODULE_CONTENT_TYPE = "application/javascript+module"

# httpx ``files=`` entries: (field, (filename, content, content_type))
UploadPart = Tuple[str, Tuple[Optional[str], bytes, str]]


@dataclass
class BundlePart:
    """One part of a multipart script bundle."""

    name: str
    filename: Optional[str]
    content: bytes

    def is_script(self) -> bool:
        return any(
            candidate.lower().endswith(SCRIPT_EXTENSIONS)
            for candidate in (self.name, self.filename or "")
        )

    @property
    def module_name(self) -> str:
        if not self.name.lower().endswith(SCRIPT_EXTENSIONS) and self.filename:
            if self.filename.lower().endswith(SCRIPT_EXTENSIONS):
                return self.filename
        return self.name


class _PartCollector:
    """``MultipartParser`` callback sink that accumulates each part's bytes."""

    def __init__(self, max_part_size: int):
        self.max_part_size = max_part_size
        self.parts: List[BundlePart] = []
        self._headers: Dict[bytes, bytes] = {}
        self._field = b""
        self._value = b""
        self._content = bytearray()

    def on_part_begin(self) -> None:
        self._headers = {}
        self._content = bytearray()

    def on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._field += data[start:end]

    def on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._value += data[start:end]

    def on_header_end(self) -> None:
        self._headers[self._field.lower()] = self._value
        self._field = b""
        self._value = b""

    def on_part_data(self, data: bytes, start: int, end: int) -> None:
        self._content += data[start:end]
        if len(self._content) > self.max_part_size:
            raise ValidationError(f"Bundle part exceeds {self.max_part_size} bytes")

    def on_part_end(self) -> None:
        _, options = parse_options_header(self._headers.get(b"content-disposition", b""))
        name = options.get(b"name", b"").decode("utf-8", "replace")
        filename = options.get(b"filename")
        self.parts.append(BundlePart(
            name,
            filename.decode("utf-8", "replace") if filename is not None else None,
            bytes(self._content),
        ))

    def callbacks(self) -> Dict[str, Callable[..., None]]:
        return {
            "on_part_begin": self.on_part_begin,
            "on_header_field": self.on_header_field,
            "on_header_value": self.on_header_value,
            "on_header_end": self.on_header_end,
            "on_part_data": self.on_part_data,
            "on_part_end": self.on_part_end,
        }


def parse_bundle(body: bytes, content_type: str, max_part_size: int) -> List[BundlePart]:
    """Split a multipart body into parts, preserving order and bytes."""
    if not body.strip():
        return []
    media_type, params = parse_options_header(content_type)
    if not media_type.startswith(b"multipart/"):
        raise ValidationError("Source worker script is not a multipart bundle")
    boundary = params.get(b"boundary")
    if not boundary:
        raise ValidationError("Multipart bundle has no boundary")

    collector = _PartCollector(max_part_size)
    parser = MultipartParser(boundary, collector.callbacks())
    try:
        parser.write(body)
        parser.finalize()
    except MultipartParseError as exc:
        raise ValidationError(f"Malformed multipart bundle: {exc}")
    return collector.parts


def pick_main_module(parts: Sequence[BundlePart]) -> Optional[BundlePart]:
    """First part named like a script file, else the first part, else None."""
    for part in parts:
        if part.is_script():
            return part
    return parts[0] if parts else None


def module_upload(main_module: str, content: bytes, metadata: bytes) -> List[UploadPart]:
    """Build the ``files=`` payload for a module-format script upload."""
    return [
        ("metadata", (None, metadata, "application/json")),
        (main_module, (main_module, content, MODULE_CONTENT_TYPE)),
    ]
