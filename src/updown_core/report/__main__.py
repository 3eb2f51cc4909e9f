"""Allow running the report as: python -m updown_core.report [options]."""

from updown_core.report.cli import main

raise SystemExit(main())
