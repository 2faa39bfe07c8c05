"""Working-tree scanning: text detection and the complexity proxy."""

from .complexity import ComplexityEstimator, FileComplexityRecord, lexical_density
from .text_files import is_text_file

__all__ = ["ComplexityEstimator", "FileComplexityRecord", "is_text_file", "lexical_density"]
