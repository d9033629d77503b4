"""Allow running the refresh job as: python -m contest_core.refresh [--config path]."""

from contest_core.refresh.job import main

main()
