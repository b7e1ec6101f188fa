#!/usr/bin/env python3
"""
Download WHO Child Growth Standards tables and rebuild the packaged datasets.

This script downloads the WHO 0-5 year z-score tables (LMS parameters per
completed month) for weight-for-age, length/height-for-age and head
circumference-for-age, for boys and girls, and writes the JSON reference
datasets shipped in ``src/pedgrowth/data``.

Each row stores the LMS triplet together with ``mean = M`` and
``sd = M * S``, the parameters used by the default Z-score path.
"""

import argparse
import hashlib
import io
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import numpy as np
import pandas as pd
import requests
from requests.adapters import HTTPAdapter
from tqdm import tqdm
from urllib3.util.retry import Retry

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

REQUIRED_COLS = ["Month", "L", "M", "S"]
MAX_AGE_MONTHS = 60
WHO_VERSION = "WHO-2006"
WHO_BASE_URL = "https://www.who.int/childgrowth/standards"

# measurement type -> (output file, unit, WHO table prefix)
MEASURES: Dict[str, Tuple[str, str, str]] = {
    "weight-for-age": ("weight_for_age.json", "kg", "wfa"),
    "length-height-for-age": ("length_height_for_age.json", "cm", "lhfa"),
    "head-circumference-for-age": ("head_circumference_for_age.json", "cm", "hcfa"),
}

SEXES = {"male": "boys", "female": "girls"}


def data_sources(base_url: str = WHO_BASE_URL) -> Dict[str, List[Tuple[str, str]]]:
    """(sex, url) pairs per measurement type."""
    return {
        measure: [
            (sex, f"{base_url}/{prefix}_{who_sex}_0_5_zscores.txt")
            for sex, who_sex in SEXES.items()
        ]
        for measure, (_, _, prefix) in MEASURES.items()
    }


def download_table(url: str, timeout: int = 30) -> str:
    """Download a table from URL with retries."""
    try:
        retry_strategy = Retry(
            total=3,
            status_forcelist=[429, 500, 502, 503, 504],
            backoff_factor=2,  # Exponential backoff
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)

        with requests.Session() as session:
            session.mount("https://", adapter)
            session.mount("http://", adapter)
            response = session.get(url, timeout=timeout, verify=True)
            response.raise_for_status()
            return response.text
    except requests.RequestException as e:
        logger.error(f"Failed to download {url}: {e}")
        raise


def compute_sha256(content: str) -> str:
    """Compute SHA-256 hash of content."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def parse_who_table(content: str, name: str) -> pd.DataFrame:
    """
    Parse a WHO z-score table into Month, L, M, S columns.

    The WHO files are whitespace/tab separated with a header row; the
    SD columns are dropped since they are derivable from LMS.
    """
    df = pd.read_csv(io.StringIO(content), sep=r"\s+")
    missing = [col for col in REQUIRED_COLS if col not in df.columns]
    if missing:
        raise ValueError(f"{name}: missing required columns {missing}")

    df = df[REQUIRED_COLS].apply(pd.to_numeric, errors="coerce")
    df = df.dropna(subset=["Month"]).astype({"Month": int})
    df = df[df["Month"] <= MAX_AGE_MONTHS].reset_index(drop=True)

    validate_table(df, name)
    return df


def validate_table(df: pd.DataFrame, name: str) -> None:
    """Validate a parsed table for issues that would corrupt Z-scores."""
    if df.empty:
        raise ValueError(f"{name}: no rows parsed")

    values = df[["L", "M", "S"]].to_numpy(dtype=np.float64)
    if not np.all(np.isfinite(values)):
        raise ValueError(f"{name}: non-finite LMS values")

    months = df["Month"].to_numpy()
    if len(months) > 1 and not np.all(months[:-1] < months[1:]):
        raise ValueError(f"{name}: Month not strictly increasing")

    if np.any(df["M"] <= 0) or np.any(df["S"] <= 0):
        raise ValueError(f"{name}: M and S must be positive")

    if months[0] != 0 or months[-1] != MAX_AGE_MONTHS:
        logger.warning(
            f"{name}: covers months {months[0]}-{months[-1]}, "
            f"expected 0-{MAX_AGE_MONTHS}"
        )


def _sex_parameters(row: pd.Series) -> Dict[str, float]:
    M = float(row["M"])
    S = float(row["S"])
    return {
        "mean": round(M, 4),
        "sd": round(M * S, 4),
        "L": float(row["L"]),
        "M": M,
        "S": S,
    }


def build_dataset(
    measure: str,
    tables: Dict[str, pd.DataFrame],
    checksums: List[Dict[str, str]],
) -> Dict:
    """
    Merge the per-sex tables of one measure into a reference dataset.

    Only months present for both sexes are kept.
    """
    _, unit, _ = MEASURES[measure]
    male = tables["male"].set_index("Month")
    female = tables["female"].set_index("Month")
    months = sorted(set(male.index) & set(female.index))
    dropped = set(male.index) ^ set(female.index)
    if dropped:
        logger.warning(
            f"{measure}: months {sorted(dropped)} missing for one sex, skipped"
        )

    rows = [
        {
            "ageMonths": int(month),
            "male": _sex_parameters(male.loc[month]),
            "female": _sex_parameters(female.loc[month]),
        }
        for month in months
    ]
    return {
        "measurementType": measure,
        "version": WHO_VERSION,
        "unit": unit,
        "source": "WHO Child Growth Standards 2006, 0-5 years z-score tables (mean = M, sd = M * S)",
        "checksums": checksums,
        "rows": rows,
    }


def save_json(dataset: Dict, output_path: Path) -> None:
    """Write a dataset as JSON, one row per line."""
    header = {k: v for k, v in dataset.items() if k != "rows"}
    lines = json.dumps(header, indent=2)[:-2].rstrip()
    body = ",\n".join(f"    {json.dumps(row)}" for row in dataset["rows"])
    output_path.write_text(f'{lines},\n  "rows": [\n{body}\n  ]\n}}\n')
    logger.info(f"Saved {len(dataset['rows'])} rows to {output_path}")


def main(
    strict_mode: bool = False,
    measures: Optional[List[str]] = None,
    output_dir: Optional[Path] = None,
    base_url: str = WHO_BASE_URL,
) -> Dict[str, Path]:
    """
    Download, validate and write the selected reference datasets.

    Returns:
        Mapping of measurement type to the file written.

    Raises:
        RuntimeError: In strict mode, if any source failed.
    """
    if output_dir is None:
        output_dir = Path(__file__).parent.parent / "src" / "pedgrowth" / "data"
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    sources = data_sources(base_url)
    selected = measures or list(MEASURES)
    failed_sources = []
    downloaded: Dict[str, Dict[str, pd.DataFrame]] = {}
    checksums: Dict[str, List[Dict[str, str]]] = {}

    total_sources = sum(len(sources[measure]) for measure in selected)
    with tqdm(total=total_sources, desc="Fetching sources") as pbar:
        for measure in selected:
            for sex, url in sources[measure]:
                name = f"{measure}::{sex}"
                pbar.set_postfix({"source": name})
                pbar.update(1)
                try:
                    content = download_table(url)
                    tables = downloaded.setdefault(measure, {})
                    tables[sex] = parse_who_table(content, name)
                    checksums.setdefault(measure, []).append(
                        {
                            "url": url,
                            "sha256": compute_sha256(content),
                            "retrieved": datetime.now(timezone.utc).isoformat(
                                timespec="seconds"
                            ),
                        }
                    )
                except (requests.RequestException, ValueError) as e:
                    failed_sources.append(name)
                    logger.error(f"Failed to process {name}: {e}")
                    continue

    if strict_mode and failed_sources:
        raise RuntimeError(
            f"Strict mode failed: Unable to process sources: {', '.join(failed_sources)}"
        )

    written = {}
    for measure in selected:
        tables = downloaded.get(measure, {})
        if set(tables) != set(SEXES):
            logger.warning(f"{measure}: incomplete sources, existing file kept")
            continue
        filename, _, _ = MEASURES[measure]
        output_path = output_dir / filename
        save_json(build_dataset(measure, tables, checksums[measure]), output_path)
        written[measure] = output_path

    logger.info(f"Verification: {len(written)} of {len(selected)} datasets written")
    return written


if __name__ == "__main__":
    parser = argparse.ArgumentParser(
        description="Download WHO growth standard tables and rebuild reference datasets."
    )
    parser.add_argument(
        "--measure",
        action="append",
        choices=list(MEASURES),
        help="Measurement type to rebuild (repeatable; all by default)",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        help="Directory to write JSON datasets (defaults to the package data directory)",
    )
    parser.add_argument(
        "--base-url",
        default=WHO_BASE_URL,
        help="Base URL hosting the WHO *_0_5_zscores.txt tables",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Strict mode: exit on any error instead of continuing with warnings",
    )
    args = parser.parse_args()

    main(
        strict_mode=args.strict,
        measures=args.measure,
        output_dir=args.output_dir,
        base_url=args.base_url,
    )
