"""
Windows ``search-ms:`` query builder.

Builds a search URI from validated parameters. The builder is pure: the
same parameters always produce the same string, and the order of terms is
fixed regardless of the order the parameters arrived in.

Term order:
    displayname, kind, created-after, created-before, modified, min size,
    max size, file name, location
"""

import re
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import quote_plus

from jeeves_capability_function_calling._logging import get_component_logger
from jeeves_capability_function_calling.capabilities.base import (
    Capability,
    CapabilityDescriptor,
    CapabilityResult,
    Failure,
    FailureKind,
    ParameterSpec,
    ParameterType,
    PromptExample,
    Success,
)
from jeeves_capability_function_calling.config.thresholds import (
    DEFAULT_SEARCH_DISPLAY_NAME,
    DEFAULT_SEARCH_LOCATION,
)

KIND_VALUES = frozenset([
    "picture", "document", "music", "video", "movie",
    "email", "folder", "program", "note", "calendar",
])

KIND_ALIASES: Dict[str, str] = {
    "pictures": "picture", "image": "picture", "images": "picture",
    "photo": "picture", "photos": "picture", "pic": "picture", "pics": "picture",
    "audio": "music", "song": "music", "songs": "music", "sound": "music",
    "sounds": "music", "mp3": "music", "mp3s": "music",
    "videos": "video", "clip": "video", "clips": "video",
    "movies": "movie", "film": "movie", "films": "movie",
    "documents": "document", "doc": "document", "docs": "document",
    "file": "document", "files": "document", "pdf": "document",
    "pdfs": "document", "text": "document", "word": "document",
    "emails": "email", "mail": "email",
    "folders": "folder", "directory": "folder", "directories": "folder",
    "programs": "program", "app": "program", "apps": "program",
    "notes": "note",
}

# Message keywords -> kind, checked in order by infer_parameters
_MESSAGE_KINDS = (
    ("picture", ("picture", "image", "photo", "pic")),
    ("music", ("music", "audio", "song", "sound", "mp3")),
    ("movie", ("movie", "video", "film")),
    ("document", ("document", "doc", "pdf", "file", "word", "excel")),
)

_DISPLAY_NAMES = {
    "picture": "Images",
    "music": "Music",
    "movie": "Videos",
    "video": "Videos",
    "document": "Documents",
}

_ISO_DATE = re.compile(r"\d{4}-\d{2}-\d{2}.*")


def _enc(value: str) -> str:
    return quote_plus(value, safe="*")


def build_search_ms_query(parameters: Mapping[str, Any]) -> str:
    """Render the ``search-ms:`` URI. ``location`` must be present."""
    terms: List[str] = []

    display_name = parameters.get("displayName") or DEFAULT_SEARCH_DISPLAY_NAME
    terms.append(f"displayname={_enc(str(display_name))}")

    kind = parameters.get("kind")
    if kind:
        terms.append(f"&crumb=kind:={_enc(str(kind))}")

    created = parameters.get("createdDate")
    if created and _ISO_DATE.fullmatch(str(created)):
        terms.append(f"datecreated:>{_enc(str(created))}")

    created_end = parameters.get("createdDateEnd")
    if created_end:
        terms.append(f"datecreated:<{_enc(str(created_end))}")

    modified = parameters.get("modifiedDate")
    if modified:
        terms.append(f"datemodified:{_enc(str(modified))}")

    min_size = parameters.get("minSize")
    if min_size is not None:
        terms.append(f"size:>{int(min_size)}")

    max_size = parameters.get("maxSize")
    if max_size is not None:
        terms.append(f"size:<{int(max_size)}")

    file_name = parameters.get("fileName")
    if file_name:
        name = _enc(str(file_name))
        terms.append(
            "&crumb=" + _enc("filename:~") + name + _enc(" OR System.Generic.String:") + name
        )

    location = str(parameters["location"]).replace("/", "\\")
    terms.append(f"&crumb=location:{_enc(location)}")

    return "search-ms:" + " ".join(terms)


SEARCH_MS_DESCRIPTOR = CapabilityDescriptor(
    name="create_search_ms_query",
    description="Creates a Windows search-ms: URI to search for files",
    parameters=(
        ParameterSpec("displayName", required=True, description="Title shown for the search results"),
        ParameterSpec(
            "kind",
            required=True,
            allowed_values=KIND_VALUES,
            aliases=KIND_ALIASES,
            description="File type: " + ", ".join(sorted(KIND_VALUES)),
        ),
        ParameterSpec("location", required=True, description="Folder or drive to search"),
        ParameterSpec("createdDate", description="Created on or after, ISO 8601 (2024-10-04T13:00:00)"),
        ParameterSpec("createdDateEnd", description="Created before, ISO 8601"),
        ParameterSpec(
            "modifiedDate",
            description="today, yesterday, this week, last week, this month, last month, this year or last year",
        ),
        ParameterSpec("minSize", type=ParameterType.INTEGER, description="Minimum size in bytes"),
        ParameterSpec("maxSize", type=ParameterType.INTEGER, description="Maximum size in bytes"),
        ParameterSpec("fileName", description="File name pattern, wildcards allowed"),
    ),
    trigger_keywords=frozenset([
        "picture", "pictures", "image", "images", "photo", "photos",
        "music", "audio", "song", "songs", "mp3",
        "movie", "movies", "video", "videos", "film",
        "document", "documents", "doc", "docs", "pdf", "file", "files",
        "find", "search", "show",
    ]),
)


class SearchMsQueryCapability(Capability):
    def __init__(self, location: str = DEFAULT_SEARCH_LOCATION, logger: Optional[Any] = None):
        self._location = location
        self._logger = get_component_logger("SearchMsQueryCapability", logger)

    @property
    def descriptor(self) -> CapabilityDescriptor:
        return SEARCH_MS_DESCRIPTOR

    @property
    def location(self) -> str:
        return self._location

    def update_context(self, location: str) -> None:
        """Set the device location used for examples and inferred parameters."""
        self._location = location
        self._logger.info("search_location_updated", location=location)

    async def execute(self, parameters: Mapping[str, Any]) -> CapabilityResult:
        for name in self.descriptor.required_parameters:
            value = parameters.get(name)
            if value is None or str(value).strip() == "":
                return Failure(FailureKind.MISSING_PARAMETER, f"{name} is required", parameter=name)
        try:
            query = build_search_ms_query(parameters)
        except (TypeError, ValueError) as e:
            return Failure(FailureKind.EXECUTION_ERROR, f"could not build search query: {e}")
        self._logger.debug("search_ms_query_built", length=len(query))
        return Success(query)

    def summarize(self, payload: Any) -> str:
        return f"Here is your search link:\n{payload}"

    def detect_kind(self, text: str) -> Optional[str]:
        lowered = text.lower()
        for kind, words in _MESSAGE_KINDS:
            if any(word in lowered for word in words):
                return kind
        return None

    def infer_parameters(self, text: str) -> Optional[Dict[str, Any]]:
        kind = self.detect_kind(text)
        if kind is None:
            return None
        return {
            "displayName": _DISPLAY_NAMES.get(kind, DEFAULT_SEARCH_DISPLAY_NAME),
            "kind": kind,
            "location": self._location,
        }

    def prompt_examples(self) -> List[PromptExample]:
        loc = self._location
        return [
            PromptExample(
                "Find large images",
                {"displayName": "Large Images", "kind": "picture", "location": loc, "minSize": 10485760},
            ),
            PromptExample(
                "Search for documents modified last week",
                {"displayName": "Recent Documents", "kind": "document", "location": loc, "modifiedDate": "last week"},
            ),
            PromptExample(
                "Find videos created on October 4, 2024",
                {"displayName": "Videos Oct 4", "kind": "video", "location": loc, "createdDate": "2024-10-04T00:00:00"},
            ),
            PromptExample(
                "Search for flower pictures",
                {"displayName": "Flower Pictures", "kind": "picture", "location": loc, "fileName": "flower"},
            ),
        ]
