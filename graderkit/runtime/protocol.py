"""
Plugin reply encoding and decoding.

A run answers with exactly one ``<plugin-reply>`` document. A success reply
lists an optional output archive and one ``<criterion>`` element per result in
registration order; a failure reply carries a single ``<error>`` message.

Free text is redacted before it is serialized: every occurrence of the
workspace data folder is replaced with a neutral placeholder so stack traces
of submitted code never expose the grader's filesystem layout.
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Iterable, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel, Field

from graderkit.core.results import Result

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'
ROOT_TAG = "plugin-reply"
NO_CRITERIA_NOTE = "No criteria defined"

_XML_ILLEGAL = re.compile(
    "[^\t\n\r\x20-%s%s-%s%s-%s]" % (chr(0xD7FF), chr(0xE000), chr(0xFFFD), chr(0x10000), chr(0x10FFFF))
)


def redact(text: Optional[str], data_dir: Path | None = None, placeholder: str = ".") -> str:
    """Strip characters XML cannot carry and hide ``data_dir`` behind ``placeholder``."""

    if not text:
        return ""
    text = _XML_ILLEGAL.sub("", text)
    if data_dir is None:
        return text
    variants = {str(data_dir)}
    try:
        variants.add(str(data_dir.resolve()))
    except OSError:
        pass
    # Longest first so a resolved path that extends the given one is fully replaced.
    for variant in sorted(variants, key=len, reverse=True):
        if variant:
            text = re.sub(re.escape(variant), lambda _match: placeholder, text, flags=re.IGNORECASE)
    return text


def _serialize(root: ET.Element) -> str:
    return XML_DECLARATION + ET.tostring(root, encoding="unicode")


def encode_success(
    results: Mapping[str, Result],
    output_archive: Path | None = None,
    *,
    data_dir: Path | None = None,
    placeholder: str = ".",
) -> str:
    root = ET.Element(ROOT_TAG)
    if output_archive is not None:
        output = ET.SubElement(root, "output")
        ET.SubElement(output, "file").text = str(output_archive)
    for name, result in results.items():
        criterion = ET.SubElement(root, "criterion", {"name": redact(name, data_dir, placeholder)})
        ET.SubElement(criterion, "passed").text = "true" if result.passed else "false"
        ET.SubElement(criterion, "fulfillment").text = str(result.fulfillment)
        ET.SubElement(criterion, "details").text = redact(result.details, data_dir, placeholder)
    return _serialize(root)


def encode_failure(message: str, *, data_dir: Path | None = None, placeholder: str = ".") -> str:
    root = ET.Element(ROOT_TAG)
    ET.SubElement(root, "error").text = redact(message, data_dir, placeholder)
    return _serialize(root)


# ----------------------------------------------------------------------
# decoding


class CriterionReport(BaseModel):
    name: str
    passed: bool
    fulfillment: int = Field(ge=0, le=100)
    details: str = ""


class SuccessReport(BaseModel):
    """Decoded success reply."""

    kind: Literal["success"] = "success"
    output_file: Optional[str] = None
    criteria: List[CriterionReport] = Field(default_factory=list)

    @property
    def passed(self) -> bool:
        return all(criterion.passed for criterion in self.criteria)

    @property
    def fulfillment(self) -> int:
        """Share of passed criteria; a reply without criteria counts as complete."""
        if not self.criteria:
            return 100
        return sum(1 for criterion in self.criteria if criterion.passed) * 100 // len(self.criteria)

    def summary(self) -> str:
        status = "passed" if self.passed else "failed"
        if not self.criteria:
            return f"{status}, {self.fulfillment}% ({NO_CRITERIA_NOTE})"
        return f"{status}, {self.fulfillment}% ({len(self.criteria)} criteria)"


class FailureReport(BaseModel):
    """Decoded failure reply."""

    kind: Literal["failure"] = "failure"
    error: str

    @property
    def passed(self) -> bool:
        return False

    @property
    def fulfillment(self) -> int:
        return 0

    def summary(self) -> str:
        return f"error: {self.error.splitlines()[0] if self.error else ''}"


Report = Union[SuccessReport, FailureReport]


def _child_text(element: ET.Element, tag: str) -> str:
    child = element.find(tag)
    if child is None:
        raise ValueError(f"<{element.tag}> is missing <{tag}>")
    return child.text or ""


def _iter_criteria(root: ET.Element) -> Iterable[CriterionReport]:
    for element in root.findall("criterion"):
        name = element.get("name")
        if name is None:
            raise ValueError("<criterion> is missing its name attribute")
        passed = _child_text(element, "passed").strip().lower()
        if passed not in {"true", "false"}:
            raise ValueError(f"Criterion {name} has invalid passed flag {passed!r}")
        try:
            fulfillment = int(_child_text(element, "fulfillment").strip())
        except ValueError as exc:
            raise ValueError(f"Criterion {name} has invalid fulfillment") from exc
        details_element = element.find("details")
        details = details_element.text or "" if details_element is not None else ""
        yield CriterionReport(name=name, passed=passed == "true", fulfillment=fulfillment, details=details)


def parse_report(text: str) -> Report:
    """Decode a reply document; raises ``ValueError`` when it is not a valid reply."""

    try:
        root = ET.fromstring(text.strip().encode("utf-8"))
    except ET.ParseError as exc:
        raise ValueError(f"Report is not well-formed XML: {exc}") from exc
    if root.tag != ROOT_TAG:
        raise ValueError(f"Expected <{ROOT_TAG}> root element, found <{root.tag}>")
    error = root.find("error")
    if error is not None:
        return FailureReport(error=error.text or "")
    output_file = None
    output = root.find("output")
    if output is not None:
        file_element = output.find("file")
        output_file = (file_element.text or "").strip() or None if file_element is not None else None
    return SuccessReport(output_file=output_file, criteria=list(_iter_criteria(root)))


__all__ = [
    "CriterionReport",
    "FailureReport",
    "NO_CRITERIA_NOTE",
    "Report",
    "SuccessReport",
    "encode_failure",
    "encode_success",
    "parse_report",
    "redact",
]
