"""
Mutation testing configuration for mutmut.

Mutates the comparison stages and the reconciler; ambient code (CLI, logging,
tracing, metrics) is skipped because mutants there rarely change a verdict.
"""

SKIPPED_PATHS = (
    'tests/',
    'datarecon/cli/',
    'datarecon/utils/',
    'datarecon/parallel/metrics.py',
)

SKIPPED_PREFIXES = (
    'logger.',
    'log.',
    'logging.',
    'add_span_',
    'print(',
)


def pre_mutation(context):
    """
    Hook called before each mutation.

    Skips low-value code patterns.
    """
    if any(path in context.filename for path in SKIPPED_PATHS):
        context.skip = True

    if context.filename.endswith('__init__.py'):
        context.skip = True

    line = context.current_source_line.strip()
    if line.startswith(SKIPPED_PREFIXES):
        context.skip = True

    if line == 'pass':
        context.skip = True

    # Docstrings do not affect logic
    if '"""' in line or "'''" in line:
        context.skip = True
