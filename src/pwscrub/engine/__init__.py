"""Content transformation and output writing.

Import the run orchestrator from ``pwscrub.engine.orchestrator``; the
container codecs depend on this package.
"""

from pwscrub.engine.transformer import ContentTransformer, TransformResult, apply_rules
from pwscrub.engine.writer import ArtifactWriter, mirrored_path, write_atomic

__all__ = [
    "ArtifactWriter",
    "ContentTransformer",
    "TransformResult",
    "apply_rules",
    "mirrored_path",
    "write_atomic",
]
