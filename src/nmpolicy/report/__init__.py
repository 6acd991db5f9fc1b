"""
Reporting module for nmpolicy.

Generates human-readable and machine-readable reports of a generation.

Output formats:
    - Console: Rich table of captures with cache/resolved source
    - JSON: Structured output with meta info, captures and desired state

Example:
    from nmpolicy.report import generate_console_report, generate_json_report

    result = StateGenerator().generate(policy, current_state, cache)
    generate_console_report(result)
    print(generate_json_report(result))
"""

from nmpolicy.report.console import generate_console_report
from nmpolicy.report.json import build_report_dict, generate_json_report

__all__ = [
    "generate_console_report",
    "generate_json_report",
    "build_report_dict",
]
