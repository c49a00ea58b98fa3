from types import SimpleNamespace
from typing import List


class PrepareError(ValueError):
    """Base class of the errors that make `prepare` of a sequence node fail."""

    error_type = 'PREPARE'

    def __init__(self, message: str, attribute: str = str()):
        super().__init__(message)
        self.attribute = attribute


class ConstraintConflict(PrepareError):
    """Two mutually exclusive attributes are both set."""

    error_type = 'CONSTRAINT_CONFLICT'


class MissingDependentConstraint(PrepareError):
    """An attribute is set without the attribute it depends on."""

    error_type = 'MISSING_DEPENDENT_CONSTRAINT'


class Infeasible(PrepareError):
    """The requested timing cannot be reached within the hardware limits."""

    error_type = 'INFEASIBLE'


error_messages = {
    'CONSTRAINT_CONFLICT': "{node}::prepare() error: {message}",
    'MISSING_DEPENDENT_CONSTRAINT': "{node}::prepare() error: {message}",
    'INFEASIBLE': "{node}::set_shape() warning: {message}",
    'PREPARE': "{node}::prepare() error: {message}",
}


def make_report_entry(node_name: str, error: PrepareError) -> SimpleNamespace:
    """
    Convert a raised `PrepareError` into a report entry.

    Parameters
    ----------
    node_name : str
        Name of the offending node.
    error : PrepareError
        The error raised while preparing the node.

    Returns
    -------
    entry : SimpleNamespace
        Entry with fields `node`, `attribute`, `error_type` and `message`.
    """
    return SimpleNamespace(
        node=node_name,
        attribute=error.attribute,
        error_type=error.error_type,
        message=str(error),
    )


def format_prepare_error(entry: SimpleNamespace) -> str:
    return error_messages[entry.error_type].format(node=entry.node, message=entry.message)


def print_prepare_report(report: List[SimpleNamespace], max_errors: int = 0) -> None:
    """
    Print the entries of a prepare report, one per line.

    Parameters
    ----------
    report : list of SimpleNamespace
        Entries as collected by `Sequence.prepare()` or `check_prepare()`.
    max_errors : int, default=0
        Maximum number of entries to print. 0 prints all of them.
    """
    shown = report if max_errors <= 0 else report[:max_errors]
    for entry in shown:
        print(format_prepare_error(entry))

    if len(report) > len(shown):
        print(f'--- {len(report) - len(shown)} more errors hidden ---')
