"""
CarryOn Classifier Adapters Package

Parsing of external classifier output into Extraction records.
Network transport to the classifier is not part of this package.
"""

from carryon.adapters.classifier.response_parser import (
    build_classifier_prompt,
    parse_classifier_response,
)

__all__ = [
    "build_classifier_prompt",
    "parse_classifier_response",
]
