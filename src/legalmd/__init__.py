"""
legalmd - Legal Markdown document processing

Turns Legal Markdown documents (YAML front matter, optional clauses,
cross references, header numbering, imports and {{mixin}} templates)
into processed markdown through a dependency-ordered step pipeline.
"""

__version__ = "1.0.0"
__all__ = ["__version__"]
