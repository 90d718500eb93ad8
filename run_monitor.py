"""Convenience launcher for the cron monitor.

Usage:
  python run_monitor.py [--dry-run] [--config cron_monitor.yaml]

Meant for crontab, e.g. hourly:
  0 * * * * cd /path/to/drupal && CB_VERBOSE=0 python run_monitor.py >/dev/null 2>&1
"""

import sys

from cron_monitor.cli import main

if __name__ == "__main__":
    sys.exit(main())
