"""docsctl: Google Docs from the command line, with a Markdown compiler."""

__version__ = "0.1.0"
