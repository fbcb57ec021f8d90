"""Dev tool: execute the support matrix and fail fast on regressions.

Run from repo root:
  - `python tools/check_support_matrix.py`
  - `python tools/check_support_matrix.py --summary`

Every case goes through `operate`, `operate_inplace` and `operate_to`; a case
fails when the entry points disagree or the result type differs from
`promote_operation`.
"""

from __future__ import annotations

import sys
from pathlib import Path


def _repo_import():
    repo_root = Path(__file__).resolve().parents[1]
    python_dir = repo_root / "python"
    sys.path.insert(0, str(python_dir))
    sys.path.insert(0, str(repo_root))


def main(argv: list[str] | None = None) -> int:
    _repo_import()
    args = sys.argv[1:] if argv is None else argv

    from mutarith._internal.support_matrix import SUPPORTED, run_all, summarize

    if "--summary" in args:
        for key, count in sorted(summarize().items()):
            print(f"{key:24s} {count}")
        print(f"total: {len(SUPPORTED)}")

    failures = run_all()
    if failures:
        print("FAIL: support matrix regressions:")
        for f in failures:
            print("  -", f)
        return 1

    print(f"OK: {len(SUPPORTED)} support matrix cases passed")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
