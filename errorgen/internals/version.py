from __future__ import annotations
import platform
import sys


def _get_versions() -> dict[str, str]:
    from errorgen import __version__

    lark_ver = "unknown"
    try:
        import lark
        lark_ver = getattr(lark, "__version__", "unknown")
    except ImportError:
        pass

    return {
        "app": __version__,
        "python": platform.python_version(),
        "lark": lark_ver,
    }


def banner() -> str:
    v = _get_versions()
    return f"errorgen {v['app']} (Python {v['python']}, lark {v['lark']})"


def print_banner(stream=None) -> None:
    stream = stream or sys.stdout
    # Only use ANSI styling for interactive terminals
    if getattr(stream, "isatty", lambda: False)():
        BOLD, RESET = "\x1b[1m", "\x1b[0m"
    else:
        BOLD, RESET = "", ""
    print(f"{BOLD}{banner()}{RESET}", file=stream)
