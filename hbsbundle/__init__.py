"""hbsbundle - Handlebars template precompiler and bundler.

Precompiles a directory of Handlebars templates into a single JavaScript
module (global namespace, AMD or CommonJS).
"""

__version__ = "0.1.0"

# Configure logging for library use
import logging

logging.getLogger(__name__).addHandler(logging.NullHandler())

# Re-export main entry points
from .cli import main
from .orchestration.runner import build, run_all, run_task
from .plugin import CompileHandlebars

__all__ = ["CompileHandlebars", "build", "main", "run_all", "run_task"]
