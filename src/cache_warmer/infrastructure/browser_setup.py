"""
Browser installation helper.

Downloads the browser build Playwright drives when warming pages. Exposed as
the `cache-warmer-install-browser` console script; run it once per host after
installing the package.
"""
import argparse
import subprocess
import sys
from typing import List, Optional


def install_command(browser: str = "chromium", with_deps: bool = False) -> List[str]:
    """Command line for `playwright install` under the current interpreter."""
    command = [sys.executable, "-m", "playwright", "install"]
    if with_deps:
        command.append("--with-deps")
    command.append(browser)
    return command


def install_browser(browser: str = "chromium", with_deps: bool = False) -> int:
    """
    Download the browser binaries used by BrowserSession.

    Args:
        browser: Playwright browser name
        with_deps: Also install the system libraries the browser needs (root only)

    Returns:
        Process exit code (0 on success)
    """
    try:
        import playwright  # noqa: F401
    except ImportError:
        print("playwright is not installed; run: pip install composite-cache-warmer", file=sys.stderr)
        return 1

    command = install_command(browser, with_deps)
    print(f"Installing {browser} for Playwright...")
    try:
        completed = subprocess.run(command, check=True, capture_output=True, text=True)
    except subprocess.CalledProcessError as e:
        print(f"Browser installation failed (exit code {e.returncode})", file=sys.stderr)
        if e.stderr:
            print(e.stderr, file=sys.stderr)
        print(f"Retry manually with: {' '.join(command[1:])}", file=sys.stderr)
        return 1
    except FileNotFoundError as e:
        print(f"Cannot run the Python interpreter: {e}", file=sys.stderr)
        return 1

    if completed.stdout:
        print(completed.stdout)
    print(f"{browser} is ready.")
    return 0


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(description="Install the headless browser used by cache-warmer")
    parser.add_argument(
        "--browser",
        choices=["chromium", "firefox", "webkit"],
        default="chromium",
    )
    parser.add_argument(
        "--with-deps",
        action="store_true",
        help="Also install operating system dependencies",
    )
    args = parser.parse_args(argv)
    sys.exit(install_browser(args.browser, args.with_deps))


if __name__ == "__main__":
    main()
