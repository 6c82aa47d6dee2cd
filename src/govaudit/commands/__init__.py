"""CLI command modules for govaudit.

    - audit: `govaudit audit` (standards audit) and `govaudit check` (governance setup)
    - rules: `govaudit rules` (list the rules a preset would run)
"""
