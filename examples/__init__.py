"""
Paranoid Toolkit Examples

Available Examples:
------------------

soft_delete_example.py
    A library of clinical sites and their patients showing destroy,
    restore, dependent cascades, named scopes and the hard delete bypass.

Running Examples:
----------------

    python examples/soft_delete_example.py
"""
