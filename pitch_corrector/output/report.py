"""Diagnostics export as JSON."""

import json
from pathlib import Path
from typing import Any, Dict, Optional


def write_report(
    diagnostics,
    output_path: str,
    extra: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Write a pass's diagnostics (anything with to_dict()) as JSON.

    Args:
        diagnostics: PassDiagnostics or AnalysisSummary
        output_path: Destination .json file
        extra: Additional top-level fields (config, timings, ...)
    """
    data = diagnostics.to_dict()
    if extra:
        data.update(extra)

    Path(output_path).parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)
