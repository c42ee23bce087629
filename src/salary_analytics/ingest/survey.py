"""Parsing and normalization of raw salary-survey exports.

A survey export is a JSON array of rows whose fields are all strings
(``"salary": "30.001 - 40.000"``, ``"tech_stack": "Go, Docker"``...).
`read_survey_json` loads it into pandas, `survey_to_ddf` partitions it with
Dask and `normalize_survey_ddf` maps every partition into the stored
`SalaryRecord` schema.
"""

from __future__ import annotations

import json
import logging
import re
import uuid
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, cast

import dask.dataframe as dd
import pandas as pd
from pydantic import ValidationError

from salary_analytics.errors import ImportFormatError
from salary_analytics.models import SalaryRecord
from salary_analytics.store.frame import RECORD_COLUMNS, none_if_na

log = logging.getLogger(__name__)

SURVEY_COLUMNS = [
    "level",
    "position",
    "tech_stack",
    "experience",
    "gender",
    "company",
    "company_size",
    "work_type",
    "city",
    "currency",
    "salary",
    "raise_period",
]

KNOWN_TECHNOLOGIES: tuple[str, ...] = (
    # languages and backend frameworks
    ".Net", ".Net Core", ".Net Framework", "Java", "Python", "Go", "C#", "PHP", "Php",
    "NodeJS", "Spring Boot", "Django", "Laravel", "Rust", "Kotlin", "Ruby", "C / C++",
    "C++", "C", "Scala", "Perl", "Delphi", "Pascal", "Cobol", "Fortran", "Groovy",
    "Clojure", "F#", "VB.NET", "VB", "Visual Basic",
    # frontend
    "JavaScript", "JavaScript | Html | Css", "TypeScript", "React", "Angular", "Vue",
    "Vue.js", "Next.js", "HTML", "CSS", "jQuery", "Svelte", "Ember JS", "Html", "Css",
    "Bootstrap", "SASS", "SCSS", "Less", "Webpack",
    # mobile
    "Swift", "Objective C", "Flutter", "React Native", "Xamarin", "Android", "iOS",
    "Ionic", "Cordova",
    # databases
    "MySQL", "PostgreSQL", "MongoDB", "Oracle", "MSSQL", "SQL", "Sql", "PL/SQL",
    "Elasticsearch", "Redis", "SQLite", "MariaDB", "Cassandra", "Neo4j", "CouchDB",
    "DynamoDB", "InfluxDB", "Firebase", "Supabase",
    # cloud and devops
    "AWS", "Azure", "GCP", "Docker", "Kubernetes", "Jenkins", "Terraform", "Ansible",
    "Chef", "Puppet", "GitLab", "GitHub", "BitBucket", "CircleCI", "Travis CI",
    "Heroku", "Vercel", "Netlify",
    # enterprise
    "SAP", "ABAP", "SAP UI5", "Dynamics 365", "Salesforce", "SharePoint", "Oracle ERP",
    "Workday", "ServiceNow",
    # testing
    "Selenium", "Cypress", "JMeter", "Postman", "SOAPUI", "Jest", "Mocha", "Chai",
    "Jasmine", "Karma", "TestNG", "JUnit", "NUnit", "Cucumber",
    # games
    "Unity", "Unreal", "Unreal Engine", "Godot", "GameMaker",
    # data and ML
    "Power BI", "Tableau", "Apache Spark", "Kafka", "R", "MATLAB", "SAS", "SPSS",
    "Jupyter", "Pandas", "NumPy", "TensorFlow", "PyTorch", "Keras", "Scikit-learn",
    "OpenCV",
    # CMS and e-commerce
    "WordPress", "Drupal", "Joomla", "Magento", "Shopify", "WooCommerce", "PrestaShop",
    # RPA
    "UiPath", "Blue Prism", "Automation Anywhere", "Power Automate",
    # systems and tooling
    "Linux", "Git", "RabbitMQ", "Windows Server", "Ubuntu", "CentOS", "RedHat", "Debian",
    "MacOS", "Unix", "Jira", "Apex", "Bash", "PowerShell", "Shell", "Active Directory",
    "LDAP", "Apache", "Nginx", "IIS", "Tomcat", "JBoss", "WebLogic", "WebSphere",
    # big data
    "Hadoop", "Hive", "Pig", "Spark", "Storm", "Flink", "NiFi", "Talend", "Informatica",
    "SSIS", "Pentaho", "Databricks", "Snowflake", "BigQuery", "Redshift", "Vertica",
    "Teradata",
    # messaging
    "ActiveMQ", "Apache Pulsar", "NATS", "ZeroMQ", "Slack API", "Microsoft Teams",
    "WebRTC", "Socket.IO",
    # design
    "Photoshop", "Illustrator", "Sketch", "Figma", "Adobe XD", "InVision", "Zeplin",
    "After Effects", "Premiere Pro",
)

_EXACT = frozenset(KNOWN_TECHNOLOGIES)
_BY_LOWER: dict[str, str] = {}
for _tech in KNOWN_TECHNOLOGIES:
    _BY_LOWER.setdefault(_tech.lower(), _tech)

HYBRID_WORK_TYPE = "Hibrit (Ofis + Remote)"
SALARY_RANGE_RE = re.compile(r"^\s*([\d.]+)\s+-\s+([\d.]+)\s*$")


# =========================================================
# FIELD PARSERS
# =========================================================

def _extract_technologies(text: str) -> list[str]:
    """Pull known technology names out of free text.

    Whole words are tried first; failing that, known names are searched as
    substrings, names of two characters or fewer only as whole words.
    """
    words = text.lower().split()
    found = [_BY_LOWER[w] for w in words if w in _BY_LOWER]
    if found:
        return found

    lowered = text.lower()
    for tech in KNOWN_TECHNOLOGIES:
        needle = tech.lower()
        if needle not in lowered:
            continue
        if len(needle) <= 2 and needle not in words:
            continue
        found.append(tech)
    return found


def parse_tech_stack(text: str | None) -> list[str]:
    """Split a comma-separated tech string into canonical technology names.

    Unknown fragments are mined for known names; duplicates are dropped and
    first-seen order is kept.
    """
    if not text:
        return []

    result: list[str] = []
    for part in str(text).split(","):
        tech = part.strip()
        if not tech:
            continue
        if tech in _EXACT:
            result.append(tech)
        elif tech.lower() in _BY_LOWER:
            result.append(_BY_LOWER[tech.lower()])
        else:
            result.extend(_extract_technologies(tech))

    return list(dict.fromkeys(result))


def _parse_amount(raw: str, text: str) -> int:
    digits = raw.replace(".", "").strip()
    if not digits.isdigit():
        raise ImportFormatError(f"invalid salary amount in {text!r}")
    return int(digits)


def parse_salary_range(text: str | None) -> tuple[int, int | None]:
    """Parse ``"30.001 - 40.000"`` or ``"100.000+"`` into ``(min, max)``.

    Dots are thousands separators. An open-ended range has no maximum.

    Raises:
        ImportFormatError: the text is neither form.
    """
    value = (text or "").strip()
    if value.endswith("+"):
        return _parse_amount(value[:-1], value), None

    m = SALARY_RANGE_RE.match(value)
    if not m:
        raise ImportFormatError(f"invalid salary range format: {value!r}")
    return _parse_amount(m.group(1), value), _parse_amount(m.group(2), value)


def extract_currency_code(text: str | None) -> str:
    """Map a survey currency label to an ISO code (TRY when unrecognised)."""
    value = text or ""
    if "₺" in value or "Türk Lirası" in value:
        return "TRY"
    if "$" in value or "Dolar" in value:
        return "USD"
    if "€" in value or "Euro" in value:
        return "EUR"
    if "£" in value or "Sterlin" in value:
        return "GBP"
    return "TRY"


def normalize_work_type(text: str | None) -> str:
    value = text or ""
    if "Remote" in value and "hibrit" in value:
        return HYBRID_WORK_TYPE
    if "Hibrit" in value:
        return HYBRID_WORK_TYPE
    if "Remote" in value:
        return "Remote"
    if "Ofis" in value:
        return "Ofis"
    return value


def _text(value: Any) -> str:
    value = none_if_na(value)
    return "" if value is None else str(value).strip()


def normalize_row(row: dict[str, Any], imported_at: datetime) -> dict[str, Any]:
    """Convert one raw survey row into a `SalaryRecord`-shaped dict.

    Raises:
        ImportFormatError: salary range or raise period cannot be parsed.
    """
    salary_min, salary_max = parse_salary_range(_text(row.get("salary")))

    period = _text(row.get("raise_period")) or "1"
    if not period.isdigit():
        raise ImportFormatError(f"invalid raise period: {period!r}")

    return {
        "entry_id": uuid.uuid4().hex,
        "position": _text(row.get("position")),
        "level": _text(row.get("level")),
        "tech_stack": parse_tech_stack(_text(row.get("tech_stack"))),
        "experience": _text(row.get("experience")),
        "company": _text(row.get("company")),
        "company_size": _text(row.get("company_size")),
        "work_type": normalize_work_type(_text(row.get("work_type"))),
        "city": _text(row.get("city")),
        "currency": extract_currency_code(_text(row.get("currency"))),
        "salary_min": salary_min,
        "salary_max": salary_max,
        "raise_period": int(period),
        "start_time": imported_at,
        "end_time": None,
        "raises": [],
        "created_at": imported_at,
        "updated_at": imported_at,
    }


# =========================================================
# FRAMES
# =========================================================

def read_survey_json(path: Path) -> pd.DataFrame:
    """Load a survey export (JSON array of string rows) into pandas.

    Raises:
        ImportFormatError: the file is not a JSON array of objects.
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, list) or not all(isinstance(r, dict) for r in data):
        raise ImportFormatError(f"{path} must contain a JSON array of objects")

    pdf = pd.DataFrame(data, columns=SURVEY_COLUMNS).fillna("").astype(str)
    log.info("Read %d survey rows from %s", len(pdf), path)
    return pdf


def survey_to_ddf(pdf: pd.DataFrame, rows_per_partition: int = 50_000) -> Any:
    """Partition a survey DataFrame with Dask."""
    dd_mod = cast(Any, dd)
    return dd_mod.from_pandas(pdf, npartitions=max(1, len(pdf) // rows_per_partition))


def _normalize_partition(pdf: pd.DataFrame, imported_at: datetime) -> pd.DataFrame:
    """Partition-level normalization applied via map_partitions.

    Rows that cannot be parsed are dropped with a warning.
    """
    rows: list[dict[str, Any]] = []
    for raw in pdf.to_dict("records"):
        try:
            rows.append(normalize_row(raw, imported_at))
        except ImportFormatError as exc:
            log.warning("Skipping survey row: %s", exc)
    return pd.DataFrame(rows, columns=RECORD_COLUMNS)


def normalize_survey_ddf(ddf: Any, imported_at: datetime | None = None) -> Any:
    """Map every partition of a raw survey Dask DataFrame into the record schema.

    Args:
        ddf: Dask DataFrame with `SURVEY_COLUMNS`.
        imported_at: Timestamp used for start/created/updated times
            (defaults to UTC now); shared by all partitions.

    Returns:
        Dask DataFrame with `RECORD_COLUMNS`.
    """
    imported_at = imported_at or datetime.now(timezone.utc)
    meta = pd.DataFrame({c: pd.Series(dtype="object") for c in RECORD_COLUMNS})
    return ddf.map_partitions(_normalize_partition, imported_at, meta=meta)


def records_from_frame(pdf: pd.DataFrame) -> tuple[list[SalaryRecord], int]:
    """Validate normalized rows with Pydantic.

    Returns:
        A tuple of (valid_records, bad_count).
    """
    good: list[SalaryRecord] = []
    bad = 0

    for rec in pdf.to_dict("records"):
        rec["salary_max"] = none_if_na(rec.get("salary_max"))
        rec["end_time"] = none_if_na(rec.get("end_time"))
        try:
            good.append(SalaryRecord.model_validate(rec))
        except ValidationError as exc:
            bad += 1
            log.warning("Invalid salary record %s: %s", rec.get("entry_id"), exc.errors()[0]["msg"])

    return good, bad


# =========================================================
# TECH STACK REPORT
# =========================================================

@dataclass
class TechStackReport:
    """Counts of recognised technologies and of tag strings yielding none."""
    total_entries: int
    valid: list[tuple[str, int]] = field(default_factory=list)
    invalid: list[tuple[str, int]] = field(default_factory=list)

    def render(self) -> str:
        lines = [
            "=== TECH STACK ANALYSIS ===",
            f"Total entries: {self.total_entries}",
            f"Valid technologies found: {len(self.valid)}",
            f"Invalid/unparsed tech strings: {len(self.invalid)}",
            "",
            f"Top {len(self.valid)} Valid Technologies:",
        ]
        lines += [f"{i:2d}. {tech:<20}: {count} entries" for i, (tech, count) in enumerate(self.valid, 1)]
        if self.invalid:
            lines += ["", f"Top {len(self.invalid)} Invalid/Unparsed Tech Strings:"]
            lines += [f"{i:2d}. {text:<40}: {count} entries" for i, (text, count) in enumerate(self.invalid, 1)]
        lines.append("=== END ANALYSIS ===")
        return "\n".join(lines)


def analyze_tech_stacks(pdf: pd.DataFrame, top: int = 20) -> TechStackReport:
    """Summarise which technologies a raw survey mentions.

    Args:
        pdf: Raw survey DataFrame with a `tech_stack` column.
        top: Number of entries kept in each ranking.
    """
    valid: Counter[str] = Counter()
    invalid: Counter[str] = Counter()

    for text in pdf.get("tech_stack", pd.Series(dtype="object")):
        text = _text(text)
        if not text:
            continue
        parsed = parse_tech_stack(text)
        valid.update(parsed)
        if not parsed:
            invalid[text] += 1

    return TechStackReport(
        total_entries=len(pdf),
        valid=valid.most_common(top),
        invalid=invalid.most_common(top),
    )
