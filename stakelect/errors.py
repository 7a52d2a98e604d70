'''Errors raised by the vote ledger and the election engine.

All errors derive from :class:`LedgerError`. Operations raising any of them
abort without changing the ledger, so a caller can always recompute its
arguments from the current state and retry.
'''

from typing import Any, Optional


class LedgerError(Exception):
    '''A ledger or election operation could not be performed.'''
    pass


class ValidationError(LedgerError):
    '''The arguments of an operation are invalid in the current state.

    E.g. a zero amount, a null group, an ineligible group or too many groups
    voted for by a single account.
    '''
    pass


class LedgerArithmeticError(ValidationError):
    '''A checked arithmetic operation would underflow or overflow.

    :param operation: Name of the arithmetic operation.
    :param operands: The operands given to the operation.
    '''
    def __init__(self, operation: str, *operands: int):
        self.operation = operation
        self.operands = operands
        super().__init__(
            f'{operation} out of range: '
            + ', '.join(str(op) for op in operands)
        )


class UnauthorizedError(ValidationError):
    '''A privileged operation was invoked by an unprivileged caller.

    :param caller: The caller identifier that was refused.
    :param role: The privilege role required by the operation.
    '''
    def __init__(self, caller: Any, role: str):
        self.caller = caller
        self.role = role
        super().__init__(f'caller {caller!r} lacks the {role!r} privilege')


class ConsistencyError(LedgerError):
    '''An argument derived from the ledger state is stale.

    Raised when sorted index hints do not bracket the true position of the
    key or when an index into the list of groups voted for does not point at
    the group. Expected to happen routinely under concurrent use; recompute
    the argument and retry.
    '''
    pass


class CapacityError(LedgerError):
    '''A capacity limit prevents the operation.

    :param message: Description of the exceeded limit.
    :param group: The group whose capacity was exceeded, if any.
    '''
    def __init__(self, message: str, group: Optional[Any] = None):
        self.group = group
        super().__init__(message)


class ReentrancyError(LedgerError):
    '''The ledger was called back into while a mutation was in progress.'''
    pass


class FrozenError(LedgerError):
    '''The election was requested while the system is frozen.'''
    pass
