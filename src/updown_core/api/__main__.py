"""Allow running the server as: python -m updown_core.api [--config config.yaml]."""

from updown_core.api.runner import main

raise SystemExit(main())
