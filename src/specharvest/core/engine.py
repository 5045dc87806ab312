#!/usr/bin/env python3
"""
SPECHARVEST ENGINE - The Orchestrator
-------------------------------------
Drives a whole extraction run: discovers spec files in the upstream
directory, classifies each against the driver's config mapping, runs the
extraction pipeline, and writes the three artifacts:

  <name>.json     {file, config, tests} per spec
  _flagged.json   every declined block, tagged with its spec name
  _stats.json     {totalFiles, totalTests, totalFlagged, files: [...]}

Files are independent, so they may be extracted in parallel. Results are
always written in sorted file order.

Author: SpecHarvest Team
Date: 2026-10-19
"""

import json
import logging
import re
from concurrent.futures import ProcessPoolExecutor
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from specharvest.core.models import ParseResult
from specharvest.core.settings import Settings
from specharvest.extraction.classifier import ConfigClassifier
from specharvest.extraction.pipeline import ExtractionPipeline

logger = logging.getLogger("specharvest.engine")

FLAGGED_ARTIFACT = "_flagged.json"
STATS_ARTIFACT = "_stats.json"


def output_name(spec_name: str) -> str:
    """`JsonOperatorSpec` -> `json-operator`."""
    name = re.sub(r"Spec$", "", spec_name)
    return re.sub(r"([a-z])([A-Z])", r"\1-\2", name).lower()


def _extract(job: Tuple[str, str, str, bool]) -> ParseResult:
    """Worker entry point; module level so process pools can pickle it."""
    filename, source, config, strict = job
    return ExtractionPipeline(strict_match_headers=strict).run(filename, source, config)


class ExtractionEngine:
    """
    Owns the file system side of a run. The extraction core itself never
    touches the disk.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.upstream = Path(settings.upstream_dir).resolve()
        self.output = Path(settings.output_dir).resolve()
        self.classifier = self._load_classifier()

    def _load_classifier(self) -> ConfigClassifier:
        mapping = self.settings.mapping_path
        if not mapping.exists():
            logger.info(f"No config mapping at {mapping}; every spec uses 'default'")
            return ConfigClassifier()
        return ConfigClassifier(mapping.read_text(encoding="utf-8"))

    def discover(self) -> List[Path]:
        """Spec files directly inside the upstream directory, sorted by name."""
        if not self.upstream.is_dir():
            raise FileNotFoundError(f"Upstream directory not found: {self.upstream}")
        return sorted(
            p for p in self.upstream.iterdir()
            if p.is_file() and p.name.endswith(self.settings.file_suffix)
        )

    def run(self, on_file: Optional[Callable[[Dict[str, Any]], None]] = None) -> Dict[str, Any]:
        """
        Extracts every discovered spec and writes all artifacts.
        `on_file` receives one report dict per file as it completes.
        Returns the stats artifact with an extra `errors` list.
        """
        self.output.mkdir(parents=True, exist_ok=True)

        jobs, errors = self._prepare_jobs()
        for error in errors:
            if on_file:
                on_file(error)

        results = self._execute(jobs)

        all_flagged: List[Dict[str, Any]] = []
        stats: Dict[str, Any] = {"totalFiles": 0, "totalTests": 0, "totalFlagged": 0, "files": []}

        for (filename, _, _, _), result in zip(jobs, results):
            spec_name = filename[:-len(".hs")] if filename.endswith(".hs") else filename
            try:
                self._write_json(self.output / f"{output_name(spec_name)}.json", result.to_spec_dict())
            except (OSError, ValueError) as e:
                logger.error(f"Error writing {spec_name}: {e}")
                error = {"file_path": filename, "status": "WRITE_ERROR", "error": str(e), "success": False}
                errors.append(error)
                if on_file:
                    on_file(error)
                continue

            for flagged in result.flagged:
                all_flagged.append({**flagged.to_dict(), "file": spec_name})

            stats["totalFiles"] += 1
            stats["totalTests"] += len(result.tests)
            stats["totalFlagged"] += len(result.flagged)
            stats["files"].append({
                "name": spec_name,
                "tests": len(result.tests),
                "flagged": len(result.flagged),
            })

            logger.info(f"{spec_name}: {len(result.tests)} tests, {len(result.flagged)} flagged")
            if on_file:
                on_file({
                    "file_path": filename,
                    "config": result.config,
                    "tests": len(result.tests),
                    "flagged": len(result.flagged),
                    "success": True,
                })

        self._write_json(self.output / FLAGGED_ARTIFACT, all_flagged)
        self._write_json(self.output / STATS_ARTIFACT, stats)

        return {**stats, "errors": errors}

    def _prepare_jobs(self) -> Tuple[List[Tuple[str, str, str, bool]], List[Dict[str, Any]]]:
        jobs = []
        errors = []
        for path in self.discover():
            try:
                source = path.read_text(encoding="utf-8-sig")
            except (OSError, UnicodeDecodeError) as e:
                logger.error(f"Error reading {path.name}: {e}")
                errors.append({"file_path": path.name, "status": "READ_ERROR", "error": str(e), "success": False})
                continue
            spec_name = path.name[:-len(".hs")] if path.name.endswith(".hs") else path.stem
            config = self.classifier.classify(spec_name)
            jobs.append((path.name, source, config, self.settings.strict_match_headers))
        return jobs, errors

    def _execute(self, jobs: List[Tuple[str, str, str, bool]]) -> List[ParseResult]:
        if self.settings.jobs > 1 and len(jobs) > 1:
            with ProcessPoolExecutor(max_workers=self.settings.jobs) as pool:
                return list(pool.map(_extract, jobs))
        return [_extract(job) for job in jobs]

    @staticmethod
    def _write_json(path: Path, payload: Any):
        path.write_text(json.dumps(payload, indent=2, ensure_ascii=False, allow_nan=False) + "\n", encoding="utf-8")
