# Configuration file for the Sphinx documentation builder.
#
# For the full list of built-in configuration values, see the documentation:
# https://www.sphinx-doc.org/en/master/usage/configuration.html

# -- Path setup ----------------------------------------------------------------
from __future__ import annotations

import dataclasses
import os
import sys
from datetime import datetime

# -- Import the package to document ----------------------------------------------
sys.path.insert(0, os.path.abspath("../../src"))


# -- Autodoc event: skip dataclass fields (already in docstring Attributes) ------
_DATACLASS_FIELD_CACHE: dict[type, set[str]] = {}


def _get_dataclass_fields(cls: type) -> set[str]:
    """Get cached set of field names for a dataclass."""
    if cls not in _DATACLASS_FIELD_CACHE:
        if dataclasses.is_dataclass(cls):
            _DATACLASS_FIELD_CACHE[cls] = {f.name for f in dataclasses.fields(cls)}
        else:
            _DATACLASS_FIELD_CACHE[cls] = set()
    return _DATACLASS_FIELD_CACHE[cls]


def autodoc_skip_member_handler(app, what, name, obj, skip, options):
    """Skip dataclass fields since they're documented in the Attributes section."""
    if skip or what != "attribute":
        return skip
    parent = getattr(obj, "__objclass__", None)
    if parent is None and hasattr(obj, "fget"):
        parent = getattr(obj.fget, "__objclass__", None)
    if parent is not None and name in _get_dataclass_fields(parent):
        return True
    return skip


def setup(app):
    """Connect event handlers."""
    app.connect("autodoc-skip-member", autodoc_skip_member_handler)

# -- Project information -----------------------------------------------------

project = "gbmschemes"
author = "gbmschemes developers"
copyright = f"{datetime.now():%Y}, {author}"

# -- General configuration ---------------------------------------------------

extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.autosummary",
    "sphinx.ext.intersphinx",
    "sphinx.ext.mathjax",
    "sphinx.ext.viewcode",
    "sphinx.ext.doctest",
    "numpydoc",
    "sphinx_copybutton",
]

nitpicky = True
nitpick_ignore = [
    ("py:class", "gbmschemes.stats_engine.Metric"),
    ("py:obj", "gbmschemes.stats_engine.Metric"),
    ("py:mod", "gbmschemes"),
]

# Slotted dataclass fields are not exposed as attributes
nitpick_ignore_regex = [
    (r"py:attr", r"gbmschemes\.stats_engine\.StatsContext\..*"),
    (r"py:attr", r"gbmschemes\.parameters\.Parameters\..*"),
    (r"py:attr", r"gbmschemes\.core\.SchemeResult\..*"),
    (r"py:attr", r"^(StatsContext|Parameters|SchemeResult)\.\w+$"),
]

templates_path = ["_templates"]
exclude_patterns = ["_build", "Thumbs.db", ".DS_Store"]

# -- Options for HTML output -------------------------------------------------

html_theme = "pydata_sphinx_theme"
html_theme_options = {
    "show_prev_next": False,
    "navigation_depth": 2,
}

# -- Autodoc / Autosummary ------------------------------------------------------
autosummary_generate = True
autosummary_imported_members = True      # include re-exported symbols
autodoc_member_order = "bysource"
autodoc_typehints = "signature"
autoclass_content = "class"
autodoc_default_options = {
    "members": True,
    "inherited-members": False,
    "show-inheritance": True,
    "undoc-members": False,
}
autodoc_class_signature = "separated"

# -- Numpydoc ----------------------------------------------------------------
numpydoc_show_class_members = False
numpydoc_class_members_toctree = False
numpydoc_xref_param_type = True

numpydoc_xref_ignore = {
    "of", "or", "default", "optional", "keyword-only",
    "shape", "length", "size",
    "mapping", "iterable", "sequence", "callable",
    "any", "scalar", "array-like", "array_like",
}

numpydoc_xref_aliases = {
    "Parameters": "gbmschemes.parameters.Parameters",
    "Scheme": "gbmschemes.schemes.Scheme",
    "Simulation": "gbmschemes.simulation.Simulation",
    "SchemeSimulation": "gbmschemes.schemes.SchemeSimulation",
    "VariateSource": "gbmschemes.variates.VariateSource",
    "ConfigurationError": "gbmschemes.variates.ConfigurationError",
    "SchemeResult": "gbmschemes.core.SchemeResult",
    "SchemeComparison": "gbmschemes.core.SchemeComparison",
    "RunConfig": "gbmschemes.config.RunConfig",
    "StatsEngine": "gbmschemes.stats_engine.StatsEngine",
    "StatsContext": "gbmschemes.stats_engine.StatsContext",
    "FnMetric": "gbmschemes.stats_engine.FnMetric",
    "Metric": "gbmschemes.stats_engine.Metric",
    "MissingReference": "gbmschemes.stats_engine.MissingReference",
    "ndarray": "numpy.ndarray",
    "Generator": "numpy.random.Generator",
    "SeedSequence": "numpy.random.SeedSequence",
    "int": ":py:class:`int`",
    "float": ":py:class:`float`",
    "bool": ":py:class:`bool`",
    "str": ":py:class:`str`",
    "dict": ":py:class:`dict`",
    "list": ":py:class:`list`",
    "tuple": ":py:class:`tuple`",
    "None": ":py:obj:`None`",
}

# -- MathJax / LaTeX macros -----------------------------------------------------
mathjax3_config = {
    "tex": {
        "inlineMath": [["$", "$"], ["\\(", "\\)"]],
        "macros": {
            "E": r"\mathbb{E}",
            "Var": r"\mathrm{Var}",
            "SE": r"\mathrm{SE}",
        },
    }
}

# -- Options for intersphinx extension ---------------------------------------

intersphinx_mapping = {
    "python": ("https://docs.python.org/3", None),
    "numpy": ("https://numpy.org/doc/stable/", None),
    "scipy": ("https://docs.scipy.org/doc/scipy/", None),
}

# -- Copybutton (skip prompts in code blocks) -----------------------------------
copybutton_prompt_text = r">>> |\.\.\. |\$ "
copybutton_prompt_is_regexp = True
