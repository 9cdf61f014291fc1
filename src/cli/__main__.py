"""Allow ``python -m src.cli`` execution; runs the ingest command."""

from src.cli.ingest import main

main()
