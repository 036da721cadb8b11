# Configuration file for the Sphinx documentation builder.
#
# UCCA Temporal: timed-formula engine documentation
#

import os
import sys

sys.path.insert(0, os.path.abspath('../src'))

# -- Project information -----------------------------------------------------

project = 'UCCA Temporal'
copyright = '2026, UCCA Temporal contributors'
author = 'UCCA Temporal contributors'
release = '0.1.0'
version = '0.1.0'

# -- General configuration ---------------------------------------------------

extensions = [
    'sphinx.ext.autodoc',
    'sphinx.ext.autosummary',
    'sphinx.ext.napoleon',
    'sphinx.ext.viewcode',
    'sphinx.ext.intersphinx',
    'sphinx.ext.mathjax',
    'sphinx_rtd_theme',
]

# Google-style docstrings throughout
napoleon_google_docstring = True
napoleon_numpy_docstring = False
napoleon_include_init_with_doc = True
napoleon_use_param = True
napoleon_use_rtype = True

autosummary_generate = True

autodoc_default_options = {
    'members': True,
    'member-order': 'bysource',
    'special-members': '__init__',
    'exclude-members': '__weakref__',
}
autodoc_typehints = 'description'

intersphinx_mapping = {
    'python': ('https://docs.python.org/3', None),
    'pydantic': ('https://docs.pydantic.dev/latest/', None),
    'structlog': ('https://www.structlog.org/en/stable/', None),
}

templates_path = ['_templates']
exclude_patterns = ['_build', 'Thumbs.db', '.DS_Store']
master_doc = 'index'

# -- Options for HTML output -------------------------------------------------

html_theme = 'sphinx_rtd_theme'
html_static_path = ['_static']

html_theme_options = {
    'prev_next_buttons_location': 'bottom',
    'collapse_navigation': False,
    'navigation_depth': 3,
}

# -- Extension configuration -------------------------------------------------

# LTL operators used in formula docstrings
mathjax3_config = {
    'tex': {
        'macros': {
            'always': r'\square',
            'eventually': r'\Diamond',
            'next': r'\bigcirc',
            'until': r'\mathcal{U}',
            'weakuntil': r'\mathcal{W}',
            'release': r'\mathcal{R}',
        }
    }
}
