"""
Console report: observations as colored [+]/[*]/[!] lines, then the verdict line.
"""
import sys
from typing import Optional, TextIO

from colorama import Fore, Style, just_fix_windows_console

from analysis.findings import AXIS_VERDICT, ERROR, GOOD, INFO, WARNING, Observation
from analysis.verdict import Verdict

_MARKERS = {
    GOOD: (Fore.GREEN, "+"),
    WARNING: (Fore.YELLOW, "*"),
    INFO: (Fore.BLUE, "*"),
    ERROR: (Fore.RED, "!"),
}


def format_observation(obs: Observation, color: bool = True) -> str:
    fore, symbol = _MARKERS.get(obs.level, (Fore.WHITE, "*"))
    if not color:
        return f"[{symbol}] {obs.message}"
    bracket = Style.BRIGHT
    return f"{bracket}[{Style.RESET_ALL}{bracket}{fore}{symbol}{Style.RESET_ALL}{bracket}]{Style.RESET_ALL} {obs.message}"


def render(
    verdict: Verdict,
    color: bool = True,
    quiet: bool = False,
    stream: Optional[TextIO] = None,
) -> None:
    """Print observations in order, ending with the verdict; quiet prints the verdict alone."""
    stream = stream or sys.stdout
    if color:
        just_fix_windows_console()
    for obs in verdict.observations:
        if quiet and obs.id != "verdict":
            continue
        print(format_observation(obs, color), file=stream)
    if verdict.errors and not quiet:
        print(format_observation(
            Observation(id="step_errors", level=ERROR, message=f"{len(verdict.errors)} step error(s)", axis=AXIS_VERDICT),
            color,
        ), file=stream)
    stream.flush()
