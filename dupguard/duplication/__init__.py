"""Block-level duplication engine.

Stages, in data-flow order:
- normalizer: comment/whitespace stripping and identifier canonicalization
- extractor: fixed-length windows with 50% overlap
- bucketer: fingerprint buckets so only likely matches are compared
- similarity: positional line-equality score
- clustering: grouping of similar blocks, first match wins
- governor: block/comparison/size ceilings for every stage
"""

from dupguard.duplication.bucketer import FINGERPRINT_LENGTH, bucket_blocks, fingerprint
from dupguard.duplication.clustering import cluster_blocks
from dupguard.duplication.engine import DuplicationEngine, EngineConfig, find_duplicates
from dupguard.duplication.extractor import extract_blocks
from dupguard.duplication.governor import ResourceGovernor
from dupguard.duplication.normalizer import IdentifierNormalizer, normalize
from dupguard.duplication.similarity import calculate_similarity, score

__all__ = [
    "DuplicationEngine",
    "EngineConfig",
    "FINGERPRINT_LENGTH",
    "IdentifierNormalizer",
    "ResourceGovernor",
    "bucket_blocks",
    "calculate_similarity",
    "cluster_blocks",
    "extract_blocks",
    "find_duplicates",
    "fingerprint",
    "normalize",
    "score",
]
