""" Parse the tailing sidecar annotation of a Pod """

from typing import Final, Iterator

from tailing_sidecar.common.error_types import InvalidAnnotationError
from tailing_sidecar.entities.sidecar_config import SidecarConfig

ENTRY_SEPARATOR: Final = ";"
FIELD_SEPARATOR: Final = ":"
UNNAMED_CONFIG_NAME: Final = "annotation-config%d"


def iter_annotation_entries(annotation: str | None) -> Iterator[str]:
    """Yield the non-blank, stripped entries of the annotation value"""
    for entry in (annotation or "").split(ENTRY_SEPARATOR):
        entry = entry.strip()
        if entry:
            yield entry


def parse_annotation_entry(entry: str, index: int) -> tuple[str, SidecarConfig]:
    """Parse one `[<name>:]<volume>:<file>` entry.

    The file is everything from the first field starting with `/`, so it may contain `:`.
    Unnamed entries are named after their position in the annotation.
    """
    fields = entry.split(FIELD_SEPARATOR)
    file_index = next((i for i, field in enumerate(fields) if field.lstrip().startswith("/")), None)
    if file_index is None:
        raise InvalidAnnotationError(entry=entry, reason="expected an absolute file path")

    file = FIELD_SEPARATOR.join([fields[file_index].lstrip(), *fields[file_index + 1 :]])
    prefix = [field.strip() for field in fields[:file_index]]
    if len(prefix) == 1:
        name, volume = UNNAMED_CONFIG_NAME % index, prefix[0]
    elif len(prefix) == 2:
        name, volume = prefix
    else:
        raise InvalidAnnotationError(entry=entry, reason="expected '[<name>:]<volume>:<file>'")

    if not name or not volume:
        raise InvalidAnnotationError(entry=entry, reason="name and volume must not be empty")
    return name, SidecarConfig(file=file, volume=volume)
