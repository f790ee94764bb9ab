"""Entry point for the SLO measurement CLI."""

from __future__ import annotations

from apps.slo_measure.main import main

if __name__ == "__main__":
    raise SystemExit(main())
