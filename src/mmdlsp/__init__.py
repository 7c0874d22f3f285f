"""mmdlsp – Mermaid Diagram Language Server."""
from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version('mmdlsp')
except PackageNotFoundError:
    __version__ = '0.0.0.dev0'
