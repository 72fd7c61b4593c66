"""Container codecs."""

from pwscrub.containers.codecs import (
    ArchiveCodec,
    ContainerCodec,
    ContainerEntry,
    EmbeddedArchiveCodec,
    EntriesTransform,
    FlatCodec,
    ScrubbedPayload,
)
from pwscrub.containers.scratch import scratch_area

__all__ = [
    "ArchiveCodec",
    "ContainerCodec",
    "ContainerEntry",
    "EmbeddedArchiveCodec",
    "EntriesTransform",
    "FlatCodec",
    "ScrubbedPayload",
    "scratch_area",
]
