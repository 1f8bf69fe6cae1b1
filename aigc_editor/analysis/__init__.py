"""
Rule-based AIGC risk analysis

Feature extraction, signal rules, cross-paragraph context and scoring.
Main entry point: detect()
"""
from aigc_editor.analysis.detector import detect, detect_paragraph, DetectorConfig, LIMITATIONS

__all__ = [
    "detect",
    "detect_paragraph",
    "DetectorConfig",
    "LIMITATIONS",
]
