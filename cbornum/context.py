#
# Rounding contexts, condition flags and signals
#

import threading
from enum import IntFlag
from math import log2

import attr

__all__ = ('Context', 'Status', 'Flags', 'DefaultContext',
           'get_context', 'set_context', 'local_context',
           'UNLIMITED', 'BINARY16', 'BINARY32', 'BINARY64', 'BINARY128',
           'NumericSignal', 'InvalidOperation', 'SignalingNaNOperand', 'InvalidAdd',
           'InvalidMultiply', 'InvalidDivide', 'InvalidRemainder', 'InvalidSqrt',
           'InvalidLog', 'InvalidPower', 'InvalidQuantize', 'InvalidRounding',
           'InvalidContext', 'InvalidComparison', 'DivisionByZero', 'Overflow',
           'Underflow', 'Subnormal', 'Inexact', 'Rounded', 'Clamped', 'NotExactError',
           'ROUND_CEILING', 'ROUND_FLOOR', 'ROUND_DOWN', 'ROUND_UP',
           'ROUND_HALF_EVEN', 'ROUND_HALF_UP', 'ROUND_HALF_DOWN', 'ROUND_ODD',
           'ROUND_NONE', 'ROUNDING_MODES')


# Rounding modes
ROUND_CEILING   = 'ROUND_CEILING'       # Towards +infinity
ROUND_FLOOR     = 'ROUND_FLOOR'         # Towards -infinity
ROUND_DOWN      = 'ROUND_DOWN'          # Towards zero
ROUND_UP        = 'ROUND_UP'            # Away from zero
ROUND_HALF_EVEN = 'ROUND_HALF_EVEN'     # To nearest with ties towards even
ROUND_HALF_DOWN = 'ROUND_HALF_DOWN'     # To nearest with ties towards zero
ROUND_HALF_UP   = 'ROUND_HALF_UP'       # To nearest with ties away from zero
ROUND_ODD       = 'ROUND_ODD'           # Inexact results get an odd LSB
ROUND_NONE      = 'ROUND_NONE'          # Inexact results are an invalid operation

ROUNDING_MODES = frozenset((ROUND_CEILING, ROUND_FLOOR, ROUND_DOWN, ROUND_UP,
                            ROUND_HALF_EVEN, ROUND_HALF_DOWN, ROUND_HALF_UP,
                            ROUND_ODD, ROUND_NONE))


# Condition flags.  Bit values are fixed so that flag words can be stored and
# exchanged.
class Flags(IntFlag):
    INEXACT     = 0x01
    ROUNDED     = 0x02
    SUBNORMAL   = 0x04
    UNDERFLOW   = 0x08
    OVERFLOW    = 0x10
    CLAMPED     = 0x20
    INVALID     = 0x40
    DIV_BY_ZERO = 0x80


#
# Signals
#

class NumericSignal(ArithmeticError):
    '''All conditions signalled by this package subclass from this.

    NumericSignal expects two arguments:

         def __init__(self, op_tuple, result):

    op_tuple is a tuple of the operation name and operands causing the signal.  result is
    the value delivered when the condition is not trapped.

    Exceptions derived from NumericSignal must have a linear inheritance from it and
    through the first base class if an exception has multiple base classes.  See, for
    example, DivisionByZero.
    '''

    flag_to_raise = 0

    @property
    def op_tuple(self):
        return self.args[0]

    @property
    def default_result(self):
        return self.args[1]

    def signal(self, context=None, status=None):
        '''Call to signal the condition.  The flag is recorded in status if one is given.  If
        the context traps the flag the exception is raised, otherwise the default result
        is returned.'''
        if status is not None:
            status.flags |= self.flag_to_raise
        if context is not None and context.traps & self.flag_to_raise:
            raise self
        return self.default_result


#
# InvalidOperation - many sub-exceptions
#

class InvalidOperation(NumericSignal):
    '''Signalled when an operation has no usefully defineable result.  The default result is
    a quiet NaN.'''

    flag_to_raise = Flags.INVALID


class SignalingNaNOperand(InvalidOperation):
    '''Signalled when an operand is a signaling NaN.'''


class InvalidAdd(InvalidOperation):
    '''Signalled when adding two differently-signed infinities or subtracting two like-signed
    infinities.'''


class InvalidMultiply(InvalidOperation):
    '''Signalled when multiplying a zero and an infinity.'''


class InvalidDivide(InvalidOperation):
    '''Signalled when dividing two zeros or two infinities, or when an exact quotient has no
    terminating representation and no precision was given.'''


class InvalidRemainder(InvalidOperation):
    '''Signalled by remainder operations when the dividend is infinite or the divisor is
    zero, and neither is a NaN.'''


class InvalidSqrt(InvalidOperation):
    '''Signalled if the sqrt operand is less than zero.'''


class InvalidLog(InvalidOperation):
    '''Signalled if the logarithm operand is less than zero.'''


class InvalidPower(InvalidOperation):
    '''Signalled for 0 ** 0, and for a negative base with a non-integral exponent.'''


class InvalidQuantize(InvalidOperation):
    '''Signalled when a value cannot be represented at the requested exponent.'''


class InvalidRounding(InvalidOperation):
    '''Signalled when the rounding mode is ROUND_NONE and a result is inexact.'''


class InvalidContext(InvalidOperation):
    '''Signalled when an operation needs a context with a precision and was not given one.'''


class InvalidComparison(InvalidOperation):
    '''Signalled on comparison of a NaN by the signaling comparisons.'''


class DivisionByZero(NumericSignal, ZeroDivisionError):
    '''Signalled when an operation on finite operands delivers an exact infinite result.'''

    flag_to_raise = Flags.DIV_BY_ZERO


class Rounded(NumericSignal):
    '''Signalled whenever significant bits are discarded, even if they were zero.'''

    flag_to_raise = Flags.ROUNDED


class Inexact(NumericSignal):
    '''Signalled when the infinitely precise result cannot be represented.'''

    flag_to_raise = Flags.INEXACT

    def signal(self, context=None, status=None):
        '''An inexact result is always a rounded one.'''
        result = super().signal(context, status)
        return Rounded(self.op_tuple, result).signal(context, status)


class Overflow(NumericSignal):
    '''Signalled when, after rounding, the result's adjusted exponent would exceed e_max.  The
    default result is either infinity, or the finite value of the greatest magnitude,
    depending on the rounding mode and sign.'''

    flag_to_raise = Flags.OVERFLOW

    def signal(self, context=None, status=None):
        result = super().signal(context, status)
        return Inexact(self.op_tuple, result).signal(context, status)


class Underflow(NumericSignal):
    '''Signalled when a subnormal result is also inexact.'''

    flag_to_raise = Flags.UNDERFLOW

    def signal(self, context=None, status=None):
        result = super().signal(context, status)
        return Inexact(self.op_tuple, result).signal(context, status)


class Subnormal(NumericSignal):
    '''Signalled when a non-zero result has an adjusted exponent below e_min.'''

    flag_to_raise = Flags.SUBNORMAL


class Clamped(NumericSignal):
    '''Signalled when the exponent of a result was altered to fit the exponent range.'''

    flag_to_raise = Flags.CLAMPED


class NotExactError(ArithmeticError):
    '''Raised by the exact conversions when a value has a fractional part.'''


#
# Status and Context
#

@attr.s(slots=True)
class Status:
    '''Accumulates the conditions signalled by operations that are passed it.

    A Status is owned by its caller.  It is not safe to share one between threads without
    external serialization.
    '''
    flags = attr.ib(default=Flags(0), converter=Flags)

    def clear(self):
        self.flags = Flags(0)


def _check_integer(name, value):
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f'{name} must be an integer')


@attr.s(slots=True, frozen=True, kw_only=True)
class Context:
    '''An immutable arithmetic context.  Carries the precision in bits, the rounding mode,
    the exponent range and which conditions raise rather than just being recorded.

    e_min and e_max bound the adjusted exponent, i.e. the exponent of the most significant
    bit.  Both are None for an unlimited exponent range.  A precision of zero means
    unlimited precision.  If clamp is set, exponents are additionally limited to
    e_max - (precision - 1) by padding the significand with zero bits.
    '''

    precision = attr.ib(default=0)
    rounding = attr.ib(default=ROUND_HALF_EVEN)
    e_min = attr.ib(default=None)
    e_max = attr.ib(default=None)
    clamp = attr.ib(default=False)
    traps = attr.ib(default=Flags(0), converter=Flags)

    @precision.validator
    def _check_precision(self, _attribute, value):
        _check_integer('precision', value)
        if value < 0:
            raise ValueError(f'precision cannot be negative: {value}')

    @rounding.validator
    def _check_rounding(self, _attribute, value):
        if value not in ROUNDING_MODES:
            raise ValueError(f'unknown rounding mode {value!r}')

    @e_max.validator
    def _check_exponent_range(self, _attribute, value):
        if (self.e_min is None) != (value is None):
            raise ValueError('e_min and e_max must both be given or both be None')
        if value is not None:
            _check_integer('e_min', self.e_min)
            _check_integer('e_max', value)
            if self.e_min > value:
                raise ValueError(f'e_min {self.e_min} exceeds e_max {value}')

    @classmethod
    def for_precision(cls, precision, rounding=ROUND_HALF_EVEN):
        '''A context with the given precision and rounding mode and unlimited exponents.'''
        return cls(precision=precision, rounding=rounding)

    @classmethod
    def from_pair(cls, precision, e_width):
        '''The context of a binary format with the given precision and exponent width.'''
        e_max = (1 << (e_width - 1)) - 1
        return cls(precision=precision, e_min=1 - e_max, e_max=e_max, clamp=True)

    @classmethod
    def from_ieee(cls, fmt_width):
        '''The context of the IEEE-754 binary interchange format of the given width.'''
        if fmt_width == 16:
            precision = 11
        elif fmt_width == 32:
            precision = 24
        elif fmt_width == 64 or (fmt_width >= 128 and fmt_width % 32 == 0):
            precision = fmt_width - round(4 * log2(fmt_width)) + 13
        else:
            raise ValueError(f'IEEE-754 does not define a standard format for width {fmt_width}')
        return cls.from_pair(precision, fmt_width - precision)

    @property
    def has_max_precision(self):
        return self.precision > 0

    @property
    def has_exponent_range(self):
        return self.e_max is not None

    @property
    def etiny(self):
        '''The smallest exponent a subnormal result can have.'''
        return self.e_min - max(self.precision - 1, 0)

    @property
    def etop(self):
        '''The largest exponent a result can have when clamping.'''
        return self.e_max - max(self.precision - 1, 0)

    def with_precision(self, precision):
        return attr.evolve(self, precision=precision)

    def with_rounding(self, rounding):
        return attr.evolve(self, rounding=rounding)

    def with_exponent_range(self, e_min, e_max):
        return attr.evolve(self, e_min=e_min, e_max=e_max)

    def with_unlimited_exponents(self):
        return attr.evolve(self, e_min=None, e_max=None, clamp=False)

    def with_clamp(self, clamp):
        return attr.evolve(self, clamp=clamp)

    def with_traps(self, traps):
        return attr.evolve(self, traps=traps)

    def round_to_nearest(self):
        '''Return True if the rounding mode rounds to nearest (ignoring ties).'''
        return self.rounding in {ROUND_HALF_EVEN, ROUND_HALF_DOWN, ROUND_HALF_UP}


#
# Predefined contexts
#

UNLIMITED = Context()
BINARY16 = Context.from_ieee(16)
BINARY32 = Context.from_ieee(32)
BINARY64 = Context.from_ieee(64)
BINARY128 = Context.from_ieee(128)

DefaultContext = UNLIMITED
tls = threading.local()


def get_context():
    '''Return the current thread's context, used by the Python operators.'''
    try:
        return tls.context
    except AttributeError:
        tls.context = DefaultContext
        return tls.context


def set_context(context):
    '''Sets the current thread's context to context.'''
    if not isinstance(context, Context):
        raise TypeError('context must be a Context instance')
    tls.context = context


class LocalContext:
    '''A context manager that will set the current context for the active thread to context
    on entry to the with-statement and restore the previous context on exit.  If no context
    is specified the current context is kept for the duration.
    '''

    def __init__(self, context=None):
        self.saved_context = None
        self.context_to_set = context

    def __enter__(self):
        self.saved_context = get_context()
        context = self.context_to_set or self.saved_context
        set_context(context)
        return context

    def __exit__(self, etype, value, traceback):
        set_context(self.saved_context)


local_context = LocalContext
