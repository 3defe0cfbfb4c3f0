"""Allow ``python -m notion_recur``."""

from notion_recur.cli import main

main()
