#
# Fixed-point kernels for the transcendental functions
#
# Each public kernel takes the number of significant bits wanted and returns a triple
# (approx, exponent, error): the true result lies within error units of approx * 2^exponent
# and approx has at least the requested number of significant bits.  The caller is
# responsible for retrying with more bits when the error interval straddles a rounding
# boundary.
#

from functools import lru_cache

GUARD = 8


def _to_fixed(mantissa, exponent, scale):
    '''Return mantissa * 2^exponent as an integer with scale fraction bits, rounded towards
    minus infinity.'''
    shift = exponent + scale
    if shift >= 0:
        return mantissa << shift
    return mantissa >> -shift


def _atanh_inverse(n, scale):
    '''Return (total, terms) where total is atanh(1/n) with scale fraction bits, within
    3 * terms units.'''
    term = (1 << scale) // n
    total = term
    n_squared = n * n
    k = 3
    terms = 1
    while term:
        term //= n_squared
        total += term // k
        k += 2
        terms += 1
    return total, terms


def _atan_inverse(n, scale):
    '''As _atanh_inverse but for atan(1/n).'''
    term = (1 << scale) // n
    total = term
    n_squared = n * n
    k = 3
    terms = 1
    while term:
        term //= n_squared
        if terms & 1:
            total -= term // k
        else:
            total += term // k
        k += 2
        terms += 1
    return total, terms


@lru_cache(maxsize=32)
def ln2(scale):
    '''Return ln(2) with scale fraction bits, within 2 units.'''
    guard = scale.bit_length() + 4
    # ln 2 = 2 atanh(1/3)
    total, _terms = _atanh_inverse(3, scale + guard)
    return (total * 2) >> guard


@lru_cache(maxsize=32)
def pi(bits):
    '''Machin's formula: pi = 16 atan(1/5) - 4 atan(1/239).'''
    scale = bits + bits.bit_length() + GUARD
    fifth, fifth_terms = _atan_inverse(5, scale)
    inverse_239, terms_239 = _atan_inverse(239, scale)
    error = 48 * fifth_terms + 12 * terms_239 + 20
    return 16 * fifth - 4 * inverse_239, -scale, error


def exp(mantissa, exponent, bits):
    '''e^x for x = mantissa * 2^exponent.'''
    # x = k ln2 + r with |r| <= ln2 / 2, so that e^x = 2^k e^r
    magnitude = max(exponent + abs(mantissa).bit_length(), 0)
    scale = bits + GUARD
    wide = scale + magnitude + 1 + GUARD
    x = _to_fixed(mantissa, exponent, wide)
    log2 = ln2(wide)
    k = (2 * x + log2) // (2 * log2)
    r = (x - k * log2) >> (wide - scale)

    one = 1 << scale
    negative = r < 0
    r = abs(r)
    total = one
    term = one
    n = 0
    while term:
        n += 1
        term = ((term * r) >> scale) // n
        total += -term if negative and n & 1 else term
    return total, k - scale, 3 * n + 8


def _log_fixed(mantissa, exponent, scale):
    '''Return (value, error) with value ln(x) for x = mantissa * 2^exponent > 0 with scale
    fraction bits.'''
    size = mantissa.bit_length()
    # x = f * 2^e with f in [0.75, 1.5)
    e = exponent + size - 1
    if size > 1 and mantissa >> (size - 2) == 3:
        e += 1
    f = _to_fixed(mantissa, exponent - e, scale)
    one = 1 << scale

    # ln f = 2 atanh((f - 1) / (f + 1))
    t = ((f - one) << scale) // (f + one)
    negative = t < 0
    t = abs(t)
    t_squared = (t * t) >> scale
    total = t
    term = t
    k = 1
    terms = 1
    while term:
        term = (term * t_squared) >> scale
        k += 2
        total += term // k
        terms += 1
    if negative:
        total = -total

    value = 2 * total
    error = 6 * terms + 8
    if e:
        value += e * ln2(scale)
        error += 2 * abs(e)
    return value, error


def _closeness_to_one(mantissa, exponent):
    '''Return how many leading fraction bits of x = mantissa * 2^exponent agree with 1.'''
    if exponent >= 0:
        return 0
    difference = mantissa - (1 << -exponent)
    if not difference:
        return 0
    return max(0, -(exponent + abs(difference).bit_length()))


def log(mantissa, exponent, bits):
    '''ln(x) for x = mantissa * 2^exponent > 0 and x != 1.'''
    magnitude = abs(exponent + mantissa.bit_length()).bit_length()
    scale = bits + _closeness_to_one(mantissa, exponent) + magnitude + 2 * GUARD
    value, error = _log_fixed(mantissa, exponent, scale)
    return value, -scale, error


def log10(mantissa, exponent, bits):
    '''log10(x) = ln(x) / ln(10) for x = mantissa * 2^exponent > 0 and x != 1.'''
    value, value_exponent, error = log(mantissa, exponent, bits + 4)
    scale = -value_exponent
    ln10, ln10_error = _log_fixed(10, 0, scale)
    quotient = (value << scale) // ln10
    error += ((abs(quotient) >> scale) + 1) * ln10_error + 1
    return quotient, value_exponent, error


def pow(x_mantissa, x_exponent, y_mantissa, y_exponent, bits):
    '''x^y = e^(y ln x) for x = x_mantissa * 2^x_exponent > 0 and y = y_mantissa * 2^y_exponent.'''
    y_magnitude = max(y_exponent + abs(y_mantissa).bit_length(), 0)
    logarithm, log_exponent, log_error = log(x_mantissa, x_exponent,
                                             bits + y_magnitude + 2 * GUARD)
    # z = y ln x with the same fraction bits as the logarithm
    z = _to_fixed(logarithm * y_mantissa, y_exponent, 0)
    z_error = _to_fixed(log_error * abs(y_mantissa), y_exponent, 0) + 2

    approx, approx_exponent, error = exp(z, log_exponent, bits)
    # A relative error of z_error * 2^log_exponent in the result
    error += ((approx * z_error) >> (-log_exponent - 1)) + 1
    return approx, approx_exponent, error
