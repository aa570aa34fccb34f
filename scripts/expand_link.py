import sys

from CoverageChecker.errors import CoverageError
from CoverageChecker.resolver import resolve
from CoverageChecker.settings import load_settings


def main():
    if len(sys.argv) != 2:
        print("Usage: expand_link.py <map URL>")
        return 1
    settings = load_settings()
    try:
        result = resolve(
            sys.argv[1].strip(),
            timeout=settings["REQUEST_TIMEOUT"],
            max_redirects=settings["MAX_REDIRECTS"],
            max_body_bytes=settings["MAX_BODY_BYTES"],
        )
    except CoverageError as e:
        print(f"error: {e.message}")
        return 1
    print(f"url: {result.final_url}")
    if result.coords is None:
        print("coords: not found")
        return 1
    print(f"coords: {result.coords.lat}, {result.coords.lng}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
