import csv
import html
import json
import zipfile
import xml.etree.ElementTree as ET
from pathlib import Path


def summarize(results_json: dict) -> dict:
    tests = results_json.get("tests", [])
    summary = {"total": len(tests), "passed": 0, "failed": 0, "skipped": 0, "expected_failures": 0, "unexpected": []}
    for test in tests:
        status = test.get("status")
        if status == "passed":
            summary["passed"] += 1
            if test.get("expected_failure"):
                summary["unexpected"].append(test.get("name"))
        elif status == "skipped":
            summary["skipped"] += 1
        else:
            summary["failed"] += 1
            if test.get("expected_failure"):
                summary["expected_failures"] += 1
            else:
                summary["unexpected"].append(test.get("name"))
    return summary


def write_html_report(results_json: dict, html_path: Path):
    summary = summarize(results_json)

    report = f"""
<html><head><title>NetReveal E2E Report</title>
<style>
body {{ font-family: Arial, sans-serif; padding: 20px; }}
.summary {{ margin-bottom: 16px; }}
.pass {{ color: #0a7b44; }}
.fail {{ color: #b00020; }}
.skip {{ color: #8a6d3b; }}
pre {{ background: #f6f8fa; padding: 12px; border-radius: 6px; overflow: auto; }}
</style>
</head><body>
  <h1>NetReveal E2E Report</h1>
  <div class="summary">
    <strong>Target:</strong> {html.escape(str(results_json.get('url', '')))} &nbsp; <strong>Mock:</strong> {results_json.get('mock', 'off')}<br />
    <strong>Total:</strong> {summary['total']} &nbsp; <strong class="pass">Passed:</strong> {summary['passed']} &nbsp;
    <strong class="fail">Failed:</strong> {summary['failed']} ({summary['expected_failures']} expected) &nbsp;
    <strong class="skip">Skipped:</strong> {summary['skipped']}
  </div>
  <hr />
  {''.join(render_test_result(tr) for tr in results_json.get('tests', []))}
</body></html>
"""
    with open(html_path, "w", encoding="utf-8") as f:
        f.write(report)


def render_test_result(test_result: dict) -> str:
    status = test_result.get("status", "unknown")
    status_class = {"passed": "pass", "skipped": "skip"}.get(status, "fail")
    name = html.escape(test_result.get("name", "Unnamed Test"))
    suite = html.escape(test_result.get("suite", ""))
    error = test_result.get("error", "")
    screenshot = test_result.get("screenshot", "")
    label = status.upper() + (" (EXPECTED FAILURE)" if test_result.get("expected_failure") else "")
    steps_rendered = html.escape(json.dumps(test_result.get("steps", []), indent=2))
    img_tag = f"<div><img src=\"{screenshot}\" style=\"max-width: 100%; border: 1px solid #ddd;\" /></div>" if screenshot else ""
    error_block = f"<pre>{html.escape(error)}</pre>" if error else ""
    return f"""
  <section>
    <h3 class="{status_class}">{suite} › {name}: {label}</h3>
    <p>Attempts: {test_result.get('attempts', 0)} &nbsp; Duration: {test_result.get('duration_ms', 0)} ms</p>
    <details>
      <summary>Steps</summary>
      <pre>{steps_rendered}</pre>
    </details>
    {img_tag}
    {error_block}
  </section>
  <hr />
"""


def write_junit_report(results_json: dict, xml_path: Path):
    """One <testsuite> per scenario suite; expected failures are reported as skipped."""
    suites: dict[str, list[dict]] = {}
    for test in results_json.get("tests", []):
        suites.setdefault(test.get("suite", "NetReveal"), []).append(test)

    root = ET.Element("testsuites", name="NetReveal E2E")
    total_tests = total_failures = total_skipped = 0
    total_time = 0.0
    for suite_name, tests in suites.items():
        suite_el = ET.SubElement(root, "testsuite", name=suite_name)
        failures = skipped = 0
        suite_time = 0.0
        for test in tests:
            seconds = test.get("duration_ms", 0) / 1000
            suite_time += seconds
            case = ET.SubElement(
                suite_el, "testcase", name=test.get("name", ""), classname=suite_name, time=f"{seconds:.3f}"
            )
            status = test.get("status")
            error = test.get("error", "")
            if status == "skipped":
                skipped += 1
                ET.SubElement(case, "skipped", message=error)
            elif status == "failed" and test.get("expected_failure"):
                skipped += 1
                ET.SubElement(case, "skipped", message="expected failure")
            elif status == "failed":
                failures += 1
                failure = ET.SubElement(case, "failure", message=error.splitlines()[0] if error else "failed")
                failure.text = error
            elif test.get("expected_failure"):
                failures += 1
                ET.SubElement(case, "failure", message="Expected to fail, but passed")
            if test.get("screenshot"):
                ET.SubElement(case, "system-out").text = f"[[ATTACHMENT|{test['screenshot']}]]"
        suite_el.set("tests", str(len(tests)))
        suite_el.set("failures", str(failures))
        suite_el.set("skipped", str(skipped))
        suite_el.set("time", f"{suite_time:.3f}")
        total_tests += len(tests)
        total_failures += failures
        total_skipped += skipped
        total_time += suite_time
    root.set("tests", str(total_tests))
    root.set("failures", str(total_failures))
    root.set("skipped", str(total_skipped))
    root.set("time", f"{total_time:.3f}")

    xml_path.parent.mkdir(parents=True, exist_ok=True)
    ET.ElementTree(root).write(xml_path, encoding="utf-8", xml_declaration=True)


def write_results_json(results_json: dict, results_path: Path):
    with open(results_path, "w", encoding="utf-8") as f:
        json.dump(results_json, f, indent=2, default=str)


def archive_files(zip_path: Path, files: list[Path]):
    with zipfile.ZipFile(zip_path, "w") as zf:
        for f in files:
            if f.exists():
                zf.write(f, arcname=f.name)


def log_to_csv(log_path: Path, timestamp: str, artifacts: dict):
    csv_exists = log_path.exists()
    with open(log_path, "a", newline="") as csvfile:
        writer = csv.writer(csvfile)
        if not csv_exists:
            writer.writerow(["Timestamp", "Scenarios", "Results", "Report", "JUnit", "Archive"])
        writer.writerow([
            timestamp,
            " ".join(artifacts.get("scenarios", [])),
            str(artifacts.get("results")),
            str(artifacts.get("report")),
            str(artifacts.get("junit")),
            str(artifacts.get("archive")),
        ])
