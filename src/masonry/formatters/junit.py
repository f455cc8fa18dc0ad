"""JUnit XML formatter for CI/CD integration.

One testsuite per standard, one testcase per certification-required control;
controls with no satisfying component are failures.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from xml.dom import minidom
from xml.etree import ElementTree as ET

from ..models.gap import GapResult


def build_junit_xml(result: GapResult, duration: float = 0) -> bytes:
    """Render the gap result as pretty-printed JUnit XML bytes."""
    by_standard: dict[str, list[str]] = {}
    for key in sorted(result.master_control_list):
        control = result.master_control_list[key]
        by_standard.setdefault(control.standard_key, []).append(key)

    testsuites = ET.Element("testsuites")
    testsuites.set("name", result.certification or "masonry")
    testsuites.set("timestamp", datetime.now().strftime("%Y-%m-%dT%H:%M:%S"))

    total_tests = 0
    total_failures = 0

    for standard_key, keys in by_standard.items():
        testsuite = ET.SubElement(testsuites, "testsuite")
        testsuite.set("name", standard_key)
        testsuite.set("tests", str(len(keys)))

        suite_failures = 0

        for key in keys:
            total_tests += 1
            control = result.master_control_list[key]

            testcase = ET.SubElement(testsuite, "testcase")
            testcase.set("name", f"{key}: {control.name}" if control.name else key)
            testcase.set("classname", standard_key)

            missing = result.missing_control_list.get(key)
            if missing is not None:
                total_failures += 1
                suite_failures += 1

                failure = ET.SubElement(testcase, "failure")
                failure.set("message", f"No component satisfies {key}")
                failure.set("type", "missing_control")

                text_parts = [f"Standard: {standard_key}", f"Control: {control.key}"]
                if missing.name:
                    text_parts.append(f"Name: {missing.name}")
                if control.description:
                    text_parts.append(f"\nDescription:\n{control.description}")
                failure.text = "\n".join(text_parts)

        testsuite.set("failures", str(suite_failures))
        testsuite.set("errors", "0")
        testsuite.set("skipped", "0")

    testsuites.set("tests", str(total_tests))
    testsuites.set("failures", str(total_failures))
    testsuites.set("errors", "0")
    if duration > 0:
        testsuites.set("time", str(round(duration, 2)))

    # Pretty-print XML
    rough = ET.tostring(testsuites, encoding="unicode")
    dom = minidom.parseString(rough)
    return dom.toprettyxml(indent="  ", encoding="UTF-8")


def export_junit_results(result: GapResult, output_path: Path, duration: float = 0) -> dict:
    """Write the JUnit XML to output_path.

    Returns:
        Dict with: path, total_tests, failures, passed.
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(build_junit_xml(result, duration))

    total = len(result.master_control_list)
    failures = len(result.missing_control_list)
    return {
        "path": str(output_path),
        "total_tests": total,
        "failures": failures,
        "passed": total - failures,
    }
