"""CLI tools for Lectern.

- ``python -m src.cli.ingest FILE`` - ingest a local PDF, TXT or EPUB
  document into a course and print the summary as JSON.

CLI modules use argparse and construct their services through
``src.main.build_services`` so they run the same pipeline as the API.
"""
