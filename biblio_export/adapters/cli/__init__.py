# biblio_export/adapters/cli/__init__.py

"""CLI adapter for the export engine"""

# Local imports
from biblio_export.adapters.cli.main import main
from biblio_export.adapters.cli.parser import create_argument_parser
from biblio_export.adapters.cli.parser import generate_output_dirname

__all__ = ["create_argument_parser", "generate_output_dirname", "main"]
