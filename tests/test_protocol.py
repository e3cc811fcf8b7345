import xml.etree.ElementTree as ET
from pathlib import Path

import pytest

from graderkit.core.results import Result
from graderkit.runtime.protocol import (
    NO_CRITERIA_NOTE,
    FailureReport,
    SuccessReport,
    encode_failure,
    encode_success,
    parse_report,
    redact,
)


def test_success_reply_shape_and_order() -> None:
    reply = encode_success(
        {"second": Result(), "first": Result(passed=False, fulfillment=25, details="bad <tag> & more")},
        Path("/tmp/out.zip"),
    )
    root = ET.fromstring(reply.encode("utf-8"))
    assert root.tag == "plugin-reply"
    assert root.find("output/file").text == "/tmp/out.zip"
    criteria = root.findall("criterion")
    assert [element.get("name") for element in criteria] == ["second", "first"]
    assert criteria[0].find("passed").text == "true"
    assert criteria[1].find("fulfillment").text == "25"
    assert criteria[1].find("details").text == "bad <tag> & more"
    assert "&lt;tag&gt; &amp; more" in reply


def test_success_reply_without_output_or_criteria() -> None:
    reply = encode_success({})
    root = ET.fromstring(reply.encode("utf-8"))
    assert root.find("output") is None
    assert root.findall("criterion") == []
    report = parse_report(reply)
    assert isinstance(report, SuccessReport)
    assert report.fulfillment == 100
    assert NO_CRITERIA_NOTE in report.summary()


def test_failure_reply_and_parse() -> None:
    reply = encode_failure("Data file argument missing")
    report = parse_report(reply)
    assert isinstance(report, FailureReport)
    assert report.error == "Data file argument missing"
    assert report.passed is False


def test_redaction_is_case_insensitive(tmp_path: Path) -> None:
    data_dir = tmp_path / "Data"
    data_dir.mkdir()
    text = f"Traceback in {str(data_dir).upper()}/src/solution.py and {data_dir}/x"
    redacted = redact(text, data_dir)
    assert str(data_dir) not in redacted
    assert str(data_dir).upper() not in redacted
    assert redacted.endswith("./src/solution.py and ./x")


def test_redaction_applies_to_both_reply_shapes(tmp_path: Path) -> None:
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    success = encode_success({"c": Result.failed(f"{data_dir}/a.py: boom")}, data_dir=data_dir, placeholder="<sub>")
    failure = encode_failure(f"cannot open {data_dir}/b.txt", data_dir=data_dir)
    assert str(data_dir) not in success and str(data_dir) not in failure
    assert parse_report(success).criteria[0].details == "<sub>/a.py: boom"
    assert parse_report(failure).error == "cannot open ./b.txt"


def test_illegal_xml_characters_are_dropped() -> None:
    reply = encode_failure("bell\x07 and null\x00 gone")
    assert parse_report(reply).error == "bell and null gone"


def test_parsed_success_summary_counts_passed_criteria() -> None:
    reply = encode_success({"a": Result(), "b": Result.failed("no"), "c": Result()})
    report = parse_report(reply)
    assert report.passed is False
    assert report.fulfillment == 66
    assert [criterion.name for criterion in report.criteria] == ["a", "b", "c"]


@pytest.mark.parametrize(
    "text",
    [
        "not xml at all",
        "<other/>",
        "<plugin-reply><criterion><passed>true</passed><fulfillment>5</fulfillment></criterion></plugin-reply>",
        '<plugin-reply><criterion name="x"><passed>maybe</passed><fulfillment>5</fulfillment></criterion></plugin-reply>',
    ],
)
def test_parse_report_rejects_invalid_replies(text: str) -> None:
    with pytest.raises(ValueError):
        parse_report(text)
